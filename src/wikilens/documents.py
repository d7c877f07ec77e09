"""In-memory text of documents open in an editor.

Editors send the live buffer for open documents; anything not open is read
from disk. Keys are normalized absolute paths, so a ``file://`` URI and the
plain path name the same document.
"""

import logging
import os
import threading

from .config import ENCODING
from .parser.paths import uri_to_path

log = logging.getLogger(__name__)


class DocumentStore:
    """Text provider for documents referenced by requests."""

    def __init__(self) -> None:
        self._texts: dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(uri: str | None) -> str | None:
        path = uri_to_path(uri)
        return os.path.abspath(path) if path else None

    def open(self, uri: str, text: str) -> None:
        key = self._key(uri)
        if key is None:
            return
        with self._lock:
            self._texts[key] = text

    # Full-text sync: an update replaces the buffer
    update = open

    def close(self, uri: str) -> None:
        key = self._key(uri)
        with self._lock:
            self._texts.pop(key, None)

    def is_open(self, uri: str) -> bool:
        return self._key(uri) in self._texts

    def get_text(self, uri: str | None) -> str | None:
        """Current text of a document: the open buffer, else the file on disk.

        Returns:
            Document text, or None if it is neither open nor readable.
        """
        key = self._key(uri)
        if key is None:
            return None

        with self._lock:
            text = self._texts.get(key)
        if text is not None:
            return text

        try:
            with open(key, encoding=ENCODING) as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            log.debug("Cannot read document %s: %s", key, e)
            return None

    def get_line(self, uri: str | None, line: int) -> str | None:
        """A single line (0-based) of a document, or None if out of range."""
        text = self.get_text(uri)
        if text is None or line < 0:
            return None
        lines = text.split("\n")
        if line >= len(lines):
            return None
        return lines[line].rstrip("\r")
