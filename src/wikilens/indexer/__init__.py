"""Document index and metadata cache."""

from .document_index import DocumentIndex

__all__ = ["DocumentIndex"]
