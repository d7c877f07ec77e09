"""Link resolution and completion search on top of a DocumentIndex.

Every query first makes sure the index has been built and, if the scan
interval has elapsed, refreshed. Neither method raises: failures become
"not found" metadata or an empty list.
"""

import logging
import os

from .indexer import DocumentIndex
from .models import CompletionRecord, DocumentMetadata, SearchHit
from .parser.links import normalize_token
from .parser.paths import display_directory, display_relative, resolve_target

log = logging.getLogger(__name__)


class LinkResolver:
    """Answers hover and completion queries for one wiki."""

    def __init__(self, index: DocumentIndex):
        self.index = index

    @property
    def root(self) -> str:
        return self.index.root

    def _refresh(self) -> None:
        self.index.ensure_initialized()
        self.index.refresh_if_due()

    def find_target(self, token: str | None, current_dir: str | None) -> str | None:
        """Find the file a link token points at.

        The directly named path wins when it exists; otherwise the index is
        searched by relative path and then by base name.

        Returns:
            Absolute path, or None if the token cannot be resolved.
        """
        target_token = normalize_token(token, self.index.extension)
        candidate = resolve_target(target_token, current_dir, self.root, self.index.extension)
        if candidate is None:
            return None
        if os.path.isfile(candidate):
            return candidate
        return self.index.lookup(target_token)

    def resolve_link(self, token: str | None, current_dir: str | None) -> DocumentMetadata | None:
        """Resolve a link token to the metadata of the document it names.

        Args:
            token: Raw text from inside ``[[...]]``.
            current_dir: Directory of the document containing the link.

        Returns:
            Metadata of the target document, not-found metadata (titled with
            the token) if no document matches, or None if the token is empty
            or there is no directory to resolve against.
        """
        if not normalize_token(token, self.index.extension) or not current_dir:
            return None

        self._refresh()

        target = self.find_target(token, current_dir)
        if target is None:
            log.debug("Unresolved link [[%s]] from %s", token, current_dir)
            return DocumentMetadata.not_found(token)
        return self.index.get_metadata(target)

    def resolve_completions(
        self, query: str | None, current_document_path: str | None
    ) -> list[CompletionRecord]:
        """Suggest documents for an in-progress link.

        Args:
            query: Partial token typed after ``[[``. Empty matches everything.
            current_document_path: Absolute path of the document being edited.
                Insert text is relative to its directory.

        Returns:
            Completion records in index order, at most index.max_results.
        """
        if not current_document_path:
            log.warning("Completion requested without a document path")
            return []

        current_dir = os.path.dirname(os.path.abspath(current_document_path))
        self._refresh()

        return [self._completion_record(hit, current_dir) for hit in self.index.search(query)]

    def _completion_record(self, hit: SearchHit, current_dir: str) -> CompletionRecord:
        bare = CompletionRecord(label=hit.name, insert_text=hit.name)

        insert_text = display_relative(current_dir, hit.absolute_path, self.index.extension)
        if not insert_text:
            log.warning("No relative path from %s to %s", current_dir, hit.absolute_path)
            return bare

        metadata = self.index.get_metadata(hit.absolute_path)
        if not metadata.exists:
            # Deleted or unreadable since the last scan
            return bare

        return CompletionRecord(
            label=hit.name,
            insert_text=insert_text,
            sort_key=insert_text.lower(),
            group_label=display_directory(hit.relative_path),
            documentation=metadata.to_completion_documentation(),
        )
