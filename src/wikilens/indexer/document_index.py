"""Document index and metadata cache for a wiki directory tree.

The index answers two questions cheaply: "which file does this link token
name?" and "which documents match this partial query?". It keeps two
structures:

- A lookup snapshot mapping lower-cased base names and lower-cased
  root-relative paths (no extension) to absolute paths. Every scan builds a
  new snapshot and publishes it with a single assignment, so readers see
  either the old or the new one.
- A metadata cache keyed by absolute path. Each entry remembers the file's
  modification time; a mismatch on access evicts it and the metadata is
  recomputed from disk.

The first scan reads every document. Later scans only list directories and
stat files, leaving content reads to the next get_metadata() call.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import NamedTuple

from .. import config as _config
from ..frontmatter import metadata_from_text
from ..models import CacheEntry, DocumentMetadata, IndexStats, SearchHit
from ..parser.paths import relative_key, strip_extension

log = logging.getLogger(__name__)


class _Snapshot(NamedTuple):
    """Lookup state published by one scan."""

    keys: dict[str, str]  # name and relative-path keys -> absolute path
    by_name: dict[str, tuple[str, ...]]  # lower-cased base name -> every path, walk order
    documents: tuple[tuple[str, str], ...]  # (relative path, absolute path), walk order


_EMPTY_SNAPSHOT = _Snapshot({}, {}, ())


class _SnapshotBuilder:
    """Accumulates one scan's documents before they are published."""

    def __init__(self, root: str, extension: str):
        self._root = root
        self._extension = extension
        self._keys: dict[str, str] = {}
        self._by_name: dict[str, list[str]] = {}
        self._documents: list[tuple[str, str]] = []

    def add(self, path: str) -> None:
        rel_path = relative_key(path, self._root, self._extension)
        name = rel_path.rsplit("/", 1)[-1]
        if not name:
            return

        # Last writer wins for a base name shared across directories
        self._keys[name.lower()] = path
        self._keys[rel_path.lower()] = path
        self._by_name.setdefault(name.lower(), []).append(path)
        self._documents.append((rel_path, path))

    def build(self) -> _Snapshot:
        return _Snapshot(
            self._keys,
            {name: tuple(paths) for name, paths in self._by_name.items()},
            tuple(self._documents),
        )


class DocumentIndex:
    """Self-refreshing index over the documents under a collection root."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        *,
        extension: str | None = None,
        scan_interval: float | None = None,
        max_results: int | None = None,
    ):
        """Initialize an empty index. No filesystem access happens here.

        Args:
            root: Collection root directory.
            extension: Document extension. Defaults to config.DOCUMENT_EXTENSION.
            scan_interval: Seconds between rescans. Defaults to
                config.SCAN_INTERVAL_SECONDS.
            max_results: Search result cap. Defaults to
                config.MAX_COMPLETION_RESULTS.
        """
        self.root = os.path.abspath(os.fspath(root))
        self.extension = extension or _config.DOCUMENT_EXTENSION
        self.scan_interval = (
            _config.SCAN_INTERVAL_SECONDS if scan_interval is None else scan_interval
        )
        self.max_results = (
            _config.MAX_COMPLETION_RESULTS if max_results is None else max_results
        )

        self._snapshot = _EMPTY_SNAPSHOT
        self._cache: dict[str, CacheEntry] = {}
        self._scan_lock = threading.Lock()
        self._initialized = threading.Event()
        self._last_scan_monotonic: float | None = None
        self._last_scan_at: datetime | None = None
        self._missing_root_logged = False

    # ─────────────────────────────────────────────────────────────────────
    # Scanning
    # ─────────────────────────────────────────────────────────────────────

    @property
    def initialized(self) -> bool:
        return self._initialized.is_set()

    def ensure_initialized(self) -> None:
        """Run the one-time full scan if it has not happened yet.

        Concurrent callers wait for the scan in progress instead of starting
        their own. Failures are logged and leave the index empty; the
        initializer is still considered done.
        """
        if self._initialized.is_set():
            return

        with self._scan_lock:
            if self._initialized.is_set():
                return

            log.info("Initializing document index for %s", self.root)
            started = time.perf_counter()
            try:
                self._full_scan()
            finally:
                self._initialized.set()

            elapsed_ms = (time.perf_counter() - started) * 1000
            log.info(
                "Document index ready: %d documents cached in %.0fms",
                len(self._cache),
                elapsed_ms,
            )

    def start_background_initialization(self) -> threading.Thread:
        """Run ensure_initialized() on a daemon thread and return it."""
        thread = threading.Thread(
            target=self.ensure_initialized,
            name="wikilens-index-init",
            daemon=True,
        )
        thread.start()
        return thread

    def is_rescan_due(self) -> bool:
        if self._last_scan_monotonic is None:
            return True
        return time.monotonic() - self._last_scan_monotonic >= self.scan_interval

    def refresh_if_due(self) -> bool:
        """Rescan the tree structure if the scan interval has elapsed.

        Rebuilds the lookup snapshot and evicts cache entries whose file
        changed or disappeared. File contents are not read.

        Returns:
            True if a rescan ran. False if none was due or another scan holds
            the lock.
        """
        if not self.is_rescan_due():
            return False

        if not self._scan_lock.acquire(blocking=False):
            return False
        try:
            if not self.is_rescan_due():
                return False
            self._rescan()
            return True
        finally:
            self._scan_lock.release()

    def _mark_scanned(self) -> None:
        self._last_scan_monotonic = time.monotonic()
        self._last_scan_at = datetime.now(UTC)

    def _root_is_directory(self) -> bool:
        if os.path.isdir(self.root):
            self._missing_root_logged = False
            return True
        if not self._missing_root_logged:
            log.warning("Wiki root directory does not exist: %s", self.root)
            self._missing_root_logged = True
        return False

    def _full_scan(self) -> None:
        self._mark_scanned()
        if not self._root_is_directory():
            return

        builder = _SnapshotBuilder(self.root, self.extension)

        def index_and_cache(path: str) -> None:
            builder.add(path)
            self._load_and_cache(path)

        self._walk(self.root, index_and_cache)
        self._snapshot = builder.build()

    def _rescan(self) -> None:
        self._mark_scanned()
        builder = _SnapshotBuilder(self.root, self.extension)
        seen: set[str] = set()

        def index_and_invalidate(path: str) -> None:
            builder.add(path)
            self._invalidate_if_modified(path)
            seen.add(path)

        if self._root_is_directory():
            self._walk(self.root, index_and_invalidate)

        for path in list(self._cache):
            if path not in seen:
                self._cache.pop(path, None)
                log.debug("Evicted vanished document %s", path)

        self._snapshot = builder.build()
        log.debug("Rescanned %s: %d index keys", self.root, len(self._snapshot.keys))

    def _walk(self, directory: str, on_document: Callable[[str], None]) -> None:
        """Visit every document under directory, entries sorted by name.

        Unreadable directories are logged and skipped; their siblings are
        still visited. Symlinks are not followed.
        """
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            log.warning("Failed to scan directory %s: %s", directory, e)
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    self._walk(entry.path, on_document)
                elif entry.is_file(follow_symlinks=False) and entry.name.endswith(
                    self.extension
                ):
                    on_document(entry.path)
            except OSError as e:
                log.warning("Failed to index %s: %s", entry.path, e)

    def _invalidate_if_modified(self, path: str) -> None:
        entry = self._cache.get(path)
        if entry is None:
            return
        try:
            mtime_ns = os.stat(path).st_mtime_ns
        except OSError:
            self._cache.pop(path, None)
            return
        if not entry.is_valid(mtime_ns):
            self._cache.pop(path, None)
            log.debug("Invalidated modified document %s", path)

    # ─────────────────────────────────────────────────────────────────────
    # Metadata
    # ─────────────────────────────────────────────────────────────────────

    def _display_name(self, path: str) -> str:
        return strip_extension(os.path.basename(path), self.extension)

    def get_metadata(self, path: str | os.PathLike[str] | None) -> DocumentMetadata:
        """Get metadata for a document, reading it only if the cache is stale.

        Args:
            path: Absolute path of the document.

        Returns:
            Cached or freshly extracted metadata. Not-found metadata if the
            file cannot be read.
        """
        if not path:
            return DocumentMetadata.not_found()

        key = os.path.abspath(os.fspath(path))
        try:
            stat = os.stat(key)
        except OSError:
            self._cache.pop(key, None)
            return DocumentMetadata.not_found(self._display_name(key))

        entry = self._cache.get(key)
        if entry is not None:
            if entry.is_valid(stat.st_mtime_ns):
                return entry.metadata
            self._cache.pop(key, None)
            log.debug("Evicted stale cache entry for %s", key)

        return self._load_and_cache(key, stat)

    def _load_and_cache(self, path: str, stat: os.stat_result | None = None) -> DocumentMetadata:
        name = self._display_name(path)
        try:
            if stat is None:
                stat = os.stat(path)
            with open(path, encoding=_config.ENCODING) as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Failed to read document %s: %s", path, e)
            return DocumentMetadata.not_found(name)

        metadata = metadata_from_text(content, name)
        self._cache[path] = CacheEntry(metadata, stat.st_mtime_ns)
        return metadata

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    @staticmethod
    def _normalize_key(token: str) -> str:
        return token.strip().replace("\\", "/").lower()

    def lookup(self, token: str | None) -> str | None:
        """Find the indexed path for a token.

        Tries the whole token as a key first, then only its final path
        segment. With duplicate base names the document visited last during
        the scan wins; see lookup_all() for every candidate.
        """
        if not token:
            return None

        keys = self._snapshot.keys
        normalized = self._normalize_key(token)
        exact = keys.get(normalized)
        if exact:
            return exact

        return keys.get(normalized.rsplit("/", 1)[-1])

    def lookup_all(self, token: str | None) -> list[str]:
        """Every indexed path whose base name matches the token's final segment."""
        if not token:
            return []
        name = self._normalize_key(token).rsplit("/", 1)[-1]
        return list(self._snapshot.by_name.get(name, ()))

    def search(self, query: str | None) -> list[SearchHit]:
        """Find documents whose name or relative path contains query.

        An empty query matches every document. Matching is a case-insensitive
        substring test against a document's index keys (its base name and its
        relative path). Results follow scan order, one per document, capped
        at max_results. Documents that lost a shared base-name key are still
        found through their relative path.
        """
        query_lower = (query or "").lower()
        results: list[SearchHit] = []
        seen: set[str] = set()

        for rel_path, path in self._snapshot.documents:
            if len(results) >= self.max_results:
                break
            # The base name is a suffix of the relative path, so one test covers both keys
            if query_lower and query_lower not in rel_path.lower():
                continue
            if rel_path in seen:
                continue
            seen.add(rel_path)
            results.append(SearchHit(rel_path, path, rel_path.rsplit("/", 1)[-1]))

        return results

    def stats(self) -> IndexStats:
        """Diagnostic counters for operational visibility."""
        snapshot = self._snapshot
        return IndexStats(
            cache_entry_count=len(self._cache),
            index_key_count=len(snapshot.keys),
            last_scan_at=self._last_scan_at,
            initialized=self.initialized,
            root=self.root,
            name_collisions=sorted(
                name for name, paths in snapshot.by_name.items() if len(paths) > 1
            ),
        )
