"""Pure path arithmetic for link tokens.

Nothing here touches the filesystem. Link tokens are written with forward
slashes regardless of platform, and display paths are always returned with
forward slashes.
"""

import os
import posixpath
from urllib.parse import unquote, urlparse

from ..config import DOCUMENT_EXTENSION

# Tokens starting with these resolve against the linking document's directory
RELATIVE_PREFIXES = ("./", "../")

# Group label for documents directly under the collection root
ROOT_LABEL = "root"


def strip_extension(name: str, extension: str = DOCUMENT_EXTENSION) -> str:
    """Remove a trailing document extension from a name or path."""
    if not name:
        return ""
    if extension and name.endswith(extension):
        return name[: -len(extension)]
    return name


def is_relative_link(token: str | None) -> bool:
    """Whether a token is explicitly relative (./ or ../)."""
    return bool(token) and token.startswith(RELATIVE_PREFIXES)


def resolve_relative(
    token: str | None, current_dir: str | None, extension: str = DOCUMENT_EXTENSION
) -> str | None:
    """Resolve a token against a directory, appending the extension."""
    if not token or not current_dir:
        return None
    return os.path.abspath(os.path.join(current_dir, token + extension))


def resolve_target(
    token: str | None,
    current_dir: str | None,
    root: str | None,
    extension: str = DOCUMENT_EXTENSION,
) -> str | None:
    """Map a link token to the absolute path it directly names.

    ``./`` and ``../`` tokens resolve against current_dir; every other token
    resolves against the collection root, including tokens with a leading
    slash.

    Args:
        token: Link token from inside ``[[...]]``.
        current_dir: Directory of the document containing the link.
        root: Collection root.
        extension: Document extension appended to the token.

    Returns:
        Absolute candidate path, or None if any input is missing.
    """
    if not token or not current_dir or not root:
        return None

    if is_relative_link(token):
        return resolve_relative(token, current_dir, extension)

    root_relative = token.lstrip("/")
    if not root_relative:
        return None
    return os.path.abspath(os.path.join(root, root_relative + extension))


def display_relative(
    from_dir: str | None, to_path: str | None, extension: str = DOCUMENT_EXTENSION
) -> str:
    """Path from from_dir to to_path as link text, extension stripped.

    Returns "" when either input is missing or no relative path exists
    (e.g. different drives on Windows).
    """
    if not from_dir or not to_path:
        return ""
    try:
        relative = os.path.relpath(to_path, from_dir)
    except ValueError:
        return ""
    return strip_extension(relative, extension).replace(os.sep, "/")


def display_directory(relative_path: str | None) -> str:
    """Parent directory of a root-relative path, or "root" at top level."""
    if not relative_path:
        return ROOT_LABEL
    parent = posixpath.dirname(relative_path)
    return parent if parent and parent != "." else ROOT_LABEL


def relative_key(path: str, root: str, extension: str = DOCUMENT_EXTENSION) -> str:
    """Root-relative forward-slash path without extension (index key form)."""
    return strip_extension(os.path.relpath(path, root), extension).replace(os.sep, "/")


def uri_to_path(uri: str | None) -> str | None:
    """Convert a ``file://`` URI to a filesystem path; plain paths pass through."""
    if not uri:
        return None
    if not uri.startswith("file://"):
        return uri
    return unquote(urlparse(uri).path) or None
