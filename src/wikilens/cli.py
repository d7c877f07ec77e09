#!/usr/bin/env python3
"""
wikilens: CLI for a markdown wiki link index

Usage:
    wikilens resolve "notes/alpha"           # Resolve a link token
    wikilens search "alp" --from notes/b.md  # Completion candidates
    wikilens check notes/b.md                # Report broken links
    wikilens stats                           # Index diagnostics
    wikilens serve                           # Run the MCP server
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

import click

from . import __version__ as WIKILENS_VERSION

if TYPE_CHECKING:
    from .resolver import LinkResolver


# ─────────────────────────────────────────────────────────────────────────────
# Output Formatting
# ─────────────────────────────────────────────────────────────────────────────


def format_table(rows: list[dict], columns: list[str], max_widths: dict | None = None) -> str:
    """Format rows as a simple table."""
    if not rows:
        return ""

    max_widths = max_widths or {}
    widths = {col: len(col) for col in columns}

    def cell(row: dict, col: str) -> str:
        val = str(row.get(col) or "")
        limit = max_widths.get(col, 50)
        if len(val) > limit:
            val = val[: limit - 3] + "..."
        return val

    for row in rows:
        for col in columns:
            widths[col] = max(widths[col], len(cell(row, col)))

    lines = [
        "  ".join(col.upper().ljust(widths[col]) for col in columns),
        "  ".join("-" * widths[col] for col in columns),
    ]
    for row in rows:
        lines.append("  ".join(cell(row, col).ljust(widths[col]) for col in columns).rstrip())

    return "\n".join(lines)


def output_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _get_resolver(ctx: click.Context) -> LinkResolver:
    """Build the resolver on first use so --help never touches the filesystem."""
    from .server import build_resolver

    obj = ctx.ensure_object(dict)
    if obj.get("resolver") is None:
        obj["resolver"] = build_resolver(obj.get("root"), obj.get("scan_interval"))
    return obj["resolver"]


def _requesting_path(resolver: LinkResolver, from_doc: str | None) -> str:
    """Absolute path of the document a query is made from.

    Without --from, queries are made from a document at the wiki root.
    """
    if from_doc:
        return os.path.abspath(from_doc)
    return os.path.join(resolver.root, "index" + resolver.index.extension)


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=WIKILENS_VERSION, prog_name="wikilens")
@click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False),
    envvar="WIKILENS_ROOT",
    help="Wiki root directory (default: .wikilens.yaml wiki_root, else ./wiki)",
)
@click.option(
    "--scan-interval",
    type=click.FloatRange(min=0),
    help="Seconds between rescans of the wiki tree (default 5)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="WIKILENS_QUIET",
    help="Suppress warnings, show only errors and essential output",
)
@click.pass_context
def cli(ctx: click.Context, root: str | None, scan_interval: float | None, quiet: bool):
    """wikilens: resolve [[links]] and search documents in a markdown wiki.

    \b
    Quick start:
      wikilens resolve "guides/setup"            # Title, summary, dates
      wikilens search "set" --from notes/today.md
      wikilens check notes/today.md              # Broken link report
      wikilens serve                             # MCP server over stdio
    """
    from ._logging import configure_logging, set_quiet_mode

    configure_logging()
    if quiet:
        set_quiet_mode(True)

    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    ctx.obj["scan_interval"] = scan_interval


@cli.command()
@click.argument("token")
@click.option("--from", "from_doc", type=click.Path(dir_okay=False), help="Document containing the link")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def resolve(ctx: click.Context, token: str, from_doc: str | None, as_json: bool):
    """Resolve a link TOKEN to its document's metadata.

    \b
    Examples:
      wikilens resolve alpha
      wikilens resolve ../outside --from notes/b.md
      wikilens resolve notes/alpha --json

    Exits with status 1 when the link does not resolve.
    """
    resolver = _get_resolver(ctx)
    current_dir = os.path.dirname(_requesting_path(resolver, from_doc))

    metadata = resolver.resolve_link(token, current_dir)
    if metadata is None:
        raise click.UsageError("Link token is empty")

    if as_json:
        output_json(metadata.model_dump(mode="json"))
    elif metadata.exists:
        click.echo(metadata.to_hover_markdown().rstrip())
    else:
        click.echo(f"Not found: {token}", err=True)

    if not metadata.exists:
        ctx.exit(1)


@cli.command()
@click.argument("query", required=False, default="")
@click.option("--from", "from_doc", type=click.Path(dir_okay=False), help="Document being edited")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def search(ctx: click.Context, query: str, from_doc: str | None, as_json: bool):
    """List documents whose name or path contains QUERY.

    With no QUERY every document is listed. Insert text is relative to the
    --from document's directory.

    \b
    Examples:
      wikilens search
      wikilens search alp --from notes/b.md --json
    """
    resolver = _get_resolver(ctx)
    records = resolver.resolve_completions(query, _requesting_path(resolver, from_doc))

    if as_json:
        output_json([record.model_dump(mode="json") for record in records])
        return

    if not records:
        click.echo("No matching documents.")
        return

    rows = [
        {"link": record.insert_text, "directory": record.group_label, "name": record.label}
        for record in records
    ]
    click.echo(format_table(rows, ["link", "directory", "name"]))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check(ctx: click.Context, file: str, as_json: bool):
    """Report every [[link]] in FILE and whether it resolves.

    Exits with status 1 when any link is broken.
    """
    from .documents import DocumentStore
    from .server import check_links

    resolver = _get_resolver(ctx)
    statuses = check_links(resolver, DocumentStore(), os.path.abspath(file))
    broken = [status for status in statuses if not status.resolved]

    if as_json:
        output_json([status.model_dump(mode="json") for status in statuses])
    elif not statuses:
        click.echo("No links found.")
    else:
        rows = [
            {"link": status.token, "status": "ok" if status.resolved else "BROKEN", "title": status.title}
            for status in statuses
        ]
        click.echo(format_table(rows, ["link", "status", "title"]))
        click.echo(f"\n{len(statuses)} links, {len(broken)} broken")

    if broken:
        ctx.exit(1)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Scan the wiki and show index diagnostics."""
    resolver = _get_resolver(ctx)
    resolver.index.ensure_initialized()
    index_stats = resolver.index.stats()

    if as_json:
        output_json(index_stats.model_dump(mode="json"))
        return

    last_scan = index_stats.last_scan_at.isoformat() if index_stats.last_scan_at else "never"
    click.echo(f"Root:          {index_stats.root}")
    click.echo(f"Initialized:   {index_stats.initialized}")
    click.echo(f"Cache entries: {index_stats.cache_entry_count}")
    click.echo(f"Index keys:    {index_stats.index_key_count}")
    click.echo(f"Last scan:     {last_scan}")
    if index_stats.name_collisions:
        click.echo(f"Shared names:  {', '.join(index_stats.name_collisions)}")


@cli.command()
@click.pass_context
def serve(ctx: click.Context):
    """Run the MCP server over stdio."""
    from .server import main

    main(ctx.obj.get("root"), ctx.obj.get("scan_interval"))


if __name__ == "__main__":
    cli()
