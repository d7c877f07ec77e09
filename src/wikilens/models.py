"""Pydantic models for the wiki index."""

from datetime import datetime
from typing import NamedTuple

from pydantic import BaseModel, Field


class DocumentMetadata(BaseModel):
    """Header-block metadata for a wiki document."""

    title: str
    summary: str | None = None  # One-line summary shown on hover
    created: str | None = None  # Raw header value, not parsed as a date
    updated: str | None = None
    exists: bool = True

    @classmethod
    def from_header(cls, header: dict[str, str] | None, name: str) -> "DocumentMetadata":
        """Build metadata from an extracted header block.

        Args:
            header: Field mapping from extract_header(), or None if the
                document has no header block.
            name: Document base name without extension, used as title when
                the header has none.
        """
        header = header or {}
        return cls(
            title=header.get("title") or name,
            summary=header.get("summary") or header.get("description") or None,
            created=header.get("date") or header.get("created") or None,
            updated=header.get("updated") or None,
        )

    @classmethod
    def not_found(cls, name: str | None = None) -> "DocumentMetadata":
        """Sentinel for a link that resolves to no readable document."""
        return cls(title=name or "Unknown document", exists=False)

    def to_hover_markdown(self) -> str:
        """Render as markdown for a hover popup."""
        parts = [f"**{self.title}**\n\n"]
        if self.summary:
            parts.append(f"{self.summary}\n\n")
        if self.created:
            parts.append(f"Created: {self.created}\n")
        if self.updated:
            parts.append(f"Updated: {self.updated}\n")
        return "".join(parts)

    def to_completion_documentation(self) -> str:
        """Render as markdown for a completion item's documentation."""
        if self.summary:
            return f"**{self.title}**\n\n{self.summary}"
        return f"**{self.title}**"


class CacheEntry(NamedTuple):
    """Metadata computed against a specific file modification time."""

    metadata: DocumentMetadata
    mtime_ns: int

    def is_valid(self, current_mtime_ns: int) -> bool:
        return self.mtime_ns == current_mtime_ns


class SearchHit(NamedTuple):
    """A document matched by a search query."""

    relative_path: str  # Root-relative, forward slashes, no extension
    absolute_path: str
    name: str  # Base name without extension


class CompletionRecord(BaseModel):
    """A completion suggestion for an in-progress link."""

    label: str
    insert_text: str
    sort_key: str | None = None
    group_label: str | None = None  # Parent directory, or "root"
    documentation: str | None = None  # Markdown


class HoverResult(BaseModel):
    """Hover content for the link under the cursor."""

    token: str
    found: bool
    markdown: str


class LinkStatus(BaseModel):
    """Resolution status of one link in a document."""

    token: str
    resolved: bool
    title: str | None = None


class IndexStats(BaseModel):
    """Diagnostic snapshot of the document index."""

    cache_entry_count: int = 0
    index_key_count: int = 0
    last_scan_at: datetime | None = None
    initialized: bool = False
    root: str | None = None
    name_collisions: list[str] = Field(default_factory=list)  # Base names shared by several documents
