"""wikilens: link resolution and document search over a markdown wiki."""

__version__ = "0.1.0"
