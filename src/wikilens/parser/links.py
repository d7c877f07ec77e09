"""Link token extraction for [[...]] markers."""

import re

from ..config import DOCUMENT_EXTENSION

# Pattern for complete [[link]] spans - captures content between double brackets
LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")

# An opening [[ with no closing bracket before the end of the text
IN_PROGRESS_PATTERN = re.compile(r"\[\[([^\]]*)$")


def extract_token_at(line: str | None, offset: int | None) -> str | None:
    """Return the link token whose [[...]] span contains offset.

    Both delimiters count as part of the span, and the position just past the
    closing brackets still matches. The first containing span wins.

    Args:
        line: A single line of text.
        offset: Character offset within the line.

    Returns:
        The text inside the brackets, or None if offset is outside every span.
    """
    if not line or offset is None:
        return None

    for match in LINK_PATTERN.finditer(line):
        if match.start() <= offset <= match.end():
            return match.group(1)
    return None


def detect_in_progress_token(line_prefix: str | None) -> str | None:
    """Return the partial token of an unterminated [[ before the cursor.

    An empty string means a bare ``[[`` was typed and every document is a
    candidate. None means no completion should be offered.
    """
    if not line_prefix:
        return None

    match = IN_PROGRESS_PATTERN.search(line_prefix)
    return match.group(1) if match else None


def normalize_token(token: str | None, extension: str = DOCUMENT_EXTENSION) -> str:
    """Reduce a raw link token to the document it names.

    - Strips whitespace
    - Drops a ``|display text`` alias
    - Drops a ``#heading`` anchor
    - Removes a trailing document extension

    Returns "" for tokens that name no document.
    """
    if not token:
        return ""

    target = token.split("|", 1)[0]
    target = target.split("#", 1)[0].strip()

    if extension and target.endswith(extension):
        target = target[: -len(extension)]

    return target


def extract_links(content: str | None) -> list[str]:
    """Extract every link token from a document, in order of first appearance.

    Args:
        content: Document text.

    Returns:
        List of unique raw link tokens.
    """
    if not content:
        return []

    seen: set[str] = set()
    links: list[str] = []

    for token in LINK_PATTERN.findall(content):
        if token not in seen:
            seen.add(token)
            links.append(token)

    return links
