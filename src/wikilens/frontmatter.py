"""Header block extraction for wiki documents.

A header block is a flat key/value prelude at the very start of a document:

    ---
    title: Alpha
    summary: test
    ---

Values are kept as plain strings. The first colon on a line splits key from
value, so ``title: Release 1.0: notes`` keeps ``Release 1.0: notes`` as the
title. Lines without a colon and lines with an empty key are ignored.
"""

from .models import DocumentMetadata

HEADER_DELIMITER = "---"


def extract_header(raw_text: str | None) -> dict[str, str] | None:
    """Extract the header block of a document.

    Args:
        raw_text: Full document text.

    Returns:
        Mapping of field name to value, or None if the text does not start
        with a complete header block.
    """
    if not raw_text:
        return None

    lines = raw_text.lstrip("\ufeff").splitlines()
    if not lines or lines[0].rstrip() != HEADER_DELIMITER:
        return None

    fields: dict[str, str] = {}
    for line in lines[1:]:
        if line.rstrip() == HEADER_DELIMITER:
            return fields

        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key:
            fields[key] = value.strip()

    # Opening delimiter without a closing one is not a header block
    return None


def metadata_from_text(raw_text: str | None, name: str) -> DocumentMetadata:
    """Build document metadata from raw text, falling back to name as title."""
    return DocumentMetadata.from_header(extract_header(raw_text), name)
