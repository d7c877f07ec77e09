"""FastMCP server for wikilens.

This module provides MCP protocol wrappers around the link resolver.
All actual logic lives in resolver.py and the indexer - this file turns
editor positions into link tokens and results into serializable models.

Core calls run in a worker thread so a large first scan never blocks the
event loop serving other requests.
"""

import asyncio
import logging
import os

from fastmcp import FastMCP

from . import config
from .documents import DocumentStore
from .indexer import DocumentIndex
from .models import CompletionRecord, DocumentMetadata, HoverResult, IndexStats, LinkStatus
from .parser.links import detect_in_progress_token, extract_links, extract_token_at
from .parser.paths import uri_to_path
from .resolver import LinkResolver

log = logging.getLogger(__name__)

NOT_FOUND_NOTE = "*File not found*"


def _document_dir(uri: str | None) -> str | None:
    path = uri_to_path(uri)
    return os.path.dirname(os.path.abspath(path)) if path else None


# ─────────────────────────────────────────────────────────────────────────────
# Request handlers
# ─────────────────────────────────────────────────────────────────────────────


def build_hover(
    resolver: LinkResolver, documents: DocumentStore, uri: str, line: int, character: int
) -> HoverResult | None:
    """Hover content for the link under a cursor position.

    Returns:
        HoverResult, or None if the position is not inside a [[link]].
    """
    text_line = documents.get_line(uri, line)
    if not text_line:
        return None

    token = extract_token_at(text_line, character)
    if not token:
        return None

    metadata = resolver.resolve_link(token, _document_dir(uri))
    if metadata is None or not metadata.exists:
        return HoverResult(token=token, found=False, markdown=f"**{token}**\n\n{NOT_FOUND_NOTE}")
    return HoverResult(token=token, found=True, markdown=metadata.to_hover_markdown())


def build_completions(
    resolver: LinkResolver, documents: DocumentStore, uri: str, line: int, character: int
) -> list[CompletionRecord]:
    """Completion records when the cursor follows an unterminated [[."""
    text_line = documents.get_line(uri, line)
    if not text_line:
        return []

    query = detect_in_progress_token(text_line[:character])
    if query is None:
        return []
    return resolver.resolve_completions(query, uri_to_path(uri))


def check_links(
    resolver: LinkResolver, documents: DocumentStore, uri: str
) -> list[LinkStatus]:
    """Resolution status of every link in a document, in order of appearance.

    Tokens naming no document (such as a bare ``[[#heading]]``) are skipped.
    """
    text = documents.get_text(uri)
    if text is None:
        return []

    current_dir = _document_dir(uri)
    statuses = []
    for token in extract_links(text):
        metadata = resolver.resolve_link(token, current_dir)
        if metadata is None:
            continue
        statuses.append(
            LinkStatus(
                token=token,
                resolved=metadata.exists,
                title=metadata.title if metadata.exists else None,
            )
        )
    return statuses


async def hover(
    resolver: LinkResolver, documents: DocumentStore, uri: str, line: int, character: int
) -> HoverResult | None:
    return await asyncio.to_thread(build_hover, resolver, documents, uri, line, character)


async def complete(
    resolver: LinkResolver, documents: DocumentStore, uri: str, line: int, character: int
) -> list[CompletionRecord]:
    return await asyncio.to_thread(build_completions, resolver, documents, uri, line, character)


async def resolve(resolver: LinkResolver, token: str, document_uri: str) -> DocumentMetadata:
    """Resolve a link token as seen from a document; never returns None."""
    metadata = await asyncio.to_thread(resolver.resolve_link, token, _document_dir(document_uri))
    return metadata or DocumentMetadata.not_found(token)


async def search(
    resolver: LinkResolver, query: str, document_uri: str
) -> list[CompletionRecord]:
    return await asyncio.to_thread(resolver.resolve_completions, query, uri_to_path(document_uri))


async def cache_stats(index: DocumentIndex) -> IndexStats:
    return index.stats()


# ─────────────────────────────────────────────────────────────────────────────
# MCP Tool Wrappers
# ─────────────────────────────────────────────────────────────────────────────


def create_server(resolver: LinkResolver, documents: DocumentStore | None = None) -> FastMCP:
    """Build a FastMCP server exposing one wiki's resolver as tools."""
    documents = documents or DocumentStore()
    mcp = FastMCP(
        name="wikilens",
        instructions=(
            "Markdown wiki link index. Use hover/complete with editor positions, "
            "or resolve_link/search_documents with a link token or partial query."
        ),
    )

    @mcp.tool(
        name="hover",
        description="Describe the [[link]] at a position: title, summary and dates of its target.",
    )
    async def hover_tool(uri: str, line: int, character: int) -> HoverResult | None:
        return await hover(resolver, documents, uri, line, character)

    @mcp.tool(
        name="complete",
        description="Suggest documents for an unterminated [[ before the cursor.",
    )
    async def complete_tool(uri: str, line: int, character: int) -> list[CompletionRecord]:
        return await complete(resolver, documents, uri, line, character)

    @mcp.tool(
        name="resolve_link",
        description="Resolve a link token, as written in the given document, to its metadata.",
    )
    async def resolve_link_tool(token: str, document_uri: str) -> DocumentMetadata:
        return await resolve(resolver, token, document_uri)

    @mcp.tool(
        name="search_documents",
        description="Find documents whose name or path contains the query (empty matches all).",
    )
    async def search_documents_tool(query: str, document_uri: str) -> list[CompletionRecord]:
        return await search(resolver, query, document_uri)

    @mcp.tool(
        name="cache_stats",
        description="Index diagnostics: cache entries, index keys, last scan time.",
    )
    async def cache_stats_tool() -> IndexStats:
        return await cache_stats(resolver.index)

    @mcp.tool(
        name="open_document",
        description="Register the editor buffer of an open document.",
    )
    async def open_document_tool(uri: str, text: str) -> bool:
        documents.open(uri, text)
        return True

    @mcp.tool(
        name="update_document",
        description="Replace the editor buffer of an open document.",
    )
    async def update_document_tool(uri: str, text: str) -> bool:
        documents.update(uri, text)
        return True

    @mcp.tool(
        name="close_document",
        description="Forget an editor buffer; the file on disk is used again.",
    )
    async def close_document_tool(uri: str) -> bool:
        documents.close(uri)
        return True

    return mcp


def build_resolver(
    root: str | None = None, scan_interval: float | None = None
) -> LinkResolver:
    """Create a resolver over the configured wiki root."""
    index = DocumentIndex(
        config.get_wiki_root(root),
        extension=config.get_document_extension(),
        scan_interval=config.get_scan_interval(scan_interval),
    )
    return LinkResolver(index)


def main(root: str | None = None, scan_interval: float | None = None) -> None:
    """Run the MCP server."""
    from ._logging import configure_logging

    configure_logging()

    resolver = build_resolver(root, scan_interval)
    log.info("Serving wiki at %s", resolver.root)

    # Index in the background; early requests wait for this scan to finish
    resolver.index.start_background_initialization()

    create_server(resolver).run()


if __name__ == "__main__":
    main()
