"""Shared test fixtures for the wikilens test suite.

Design:
- wiki_root: isolated wiki directory under tmp_path
- write_doc: helper creating documents with an optional header block
- index/resolver: objects over wiki_root with rescans disabled unless a test
  asks for them
- runner: CliRunner for CLI tests
"""

import logging
import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from wikilens.indexer import DocumentIndex
from wikilens.resolver import LinkResolver

# Long enough that no rescan happens during a test
NO_RESCAN = 3600.0


def write_doc(
    root: Path,
    rel_path: str,
    title: str | None = None,
    summary: str | None = None,
    body: str = "Some content.",
    **fields: str,
) -> Path:
    """Create a document, with a header block when any field is given."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)

    header = {"title": title, "summary": summary, **fields}
    lines = [f"{key}: {value}" for key, value in header.items() if value is not None]
    content = ("---\n" + "\n".join(lines) + "\n---\n\n" + body) if lines else body

    path.write_text(content, encoding="utf-8")
    return path


def bump_mtime(path: Path, seconds: int = 10) -> None:
    """Move a file's modification time forward without depending on clock resolution."""
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("wikilens")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def wiki_root(tmp_path: Path, monkeypatch) -> Path:
    """Empty wiki directory; config discovery is pointed away from the real cwd."""
    root = tmp_path / "wiki"
    root.mkdir()
    for var in ("WIKILENS_ROOT", "WIKILENS_SCAN_INTERVAL", "WIKILENS_EXTENSION"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return root


@pytest.fixture
def index(wiki_root: Path) -> DocumentIndex:
    return DocumentIndex(wiki_root, scan_interval=NO_RESCAN)


@pytest.fixture
def resolver(index: DocumentIndex) -> LinkResolver:
    return LinkResolver(index)


@pytest.fixture
def sample_wiki(wiki_root: Path) -> Path:
    """Small wiki used by resolver and server tests.

    wiki/
      outside.md          title: Outside
      notes/a.md          title: Alpha, summary: test
      notes/b.md          links to [[a]] and [[../outside]]
    """
    write_doc(wiki_root, "outside.md", title="Outside")
    write_doc(wiki_root, "notes/a.md", title="Alpha", summary="test", date="2024-01-15")
    write_doc(wiki_root, "notes/b.md", body="See [[a]] and [[../outside]] and [[missing]].\n")
    return wiki_root
