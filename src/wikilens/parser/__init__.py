"""Link token parsing and path resolution."""

from .links import detect_in_progress_token, extract_links, extract_token_at, normalize_token
from .paths import (
    display_directory,
    display_relative,
    resolve_relative,
    resolve_target,
    strip_extension,
    uri_to_path,
)

__all__ = [
    "extract_token_at",
    "detect_in_progress_token",
    "extract_links",
    "normalize_token",
    "resolve_target",
    "resolve_relative",
    "display_relative",
    "display_directory",
    "strip_extension",
    "uri_to_path",
]
