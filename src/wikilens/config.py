"""Configuration management for wikilens.

This module contains all configurable constants for the wiki index.
Magic numbers are documented here rather than scattered throughout the codebase.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)


# =============================================================================
# Documents
# =============================================================================

# Extension of indexable documents. Applied uniformly for indexing, link
# resolution (appended to link tokens) and display paths (stripped).
DOCUMENT_EXTENSION = ".md"

# All documents are decoded as UTF-8 text.
ENCODING = "utf-8"


# =============================================================================
# Collection Root
# =============================================================================

# Used when no root is given on the command line, in the environment or in a
# discovered config file. Relative to the working directory.
DEFAULT_WIKI_ROOT = "./wiki"

# Per-project config file, discovered by walking up from the working directory.
CONFIG_FILENAME = ".wikilens.yaml"

# Maximum directory traversal depth when searching for the config file.
MAX_CONFIG_SEARCH_DEPTH = 10


# =============================================================================
# Index Refresh
# =============================================================================

# Minimum seconds between two structural rescans of the wiki tree.
# Directory listing is cheap compared to reading every document, so a short
# interval keeps completions fresh without re-parsing files.
SCAN_INTERVAL_SECONDS = 5.0


# =============================================================================
# Completion
# =============================================================================

# Upper bound on search hits returned for one completion request.
MAX_COMPLETION_RESULTS = 50


def _discover_project_config(
    start_dir: Path | None = None, max_depth: int = MAX_CONFIG_SEARCH_DEPTH
) -> tuple[Path, dict[str, Any]] | None:
    """Walk up from start_dir looking for a .wikilens.yaml file.

    Args:
        start_dir: Directory to start from (defaults to cwd)
        max_depth: Maximum directories to traverse up

    Returns:
        Tuple of (config_path, parsed mapping) if found, None otherwise.
    """
    current = Path(start_dir or os.getcwd()).resolve()

    for _ in range(max_depth):
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            try:
                data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError) as e:
                log.warning("Ignoring unreadable config file %s: %s", config_file, e)
                return None
            if not isinstance(data, dict):
                log.warning("Ignoring config file %s: expected a mapping", config_file)
                return None
            return config_file, data

        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    return None


def get_wiki_root(explicit: str | os.PathLike[str] | None = None) -> Path:
    """Get the collection root directory.

    Discovery order:
    1. Explicit argument (e.g. the CLI --root option)
    2. WIKILENS_ROOT environment variable
    3. wiki_root in a .wikilens.yaml found walking up from cwd
       (relative values are resolved against the config file's directory)
    4. ./wiki

    The directory is not required to exist: a missing root is logged by the
    index and degrades every query to "no match".
    """
    if explicit:
        return Path(explicit).expanduser()

    root = os.environ.get("WIKILENS_ROOT")
    if root:
        return Path(root).expanduser()

    project_config = _discover_project_config()
    if project_config:
        config_path, data = project_config
        wiki_root = data.get("wiki_root")
        if isinstance(wiki_root, str) and wiki_root.strip():
            return (config_path.parent / Path(wiki_root).expanduser()).resolve()

    return Path(DEFAULT_WIKI_ROOT)


def _parse_interval(value: Any, source: str) -> float | None:
    try:
        interval = float(value)
    except (TypeError, ValueError):
        log.warning("Invalid scan interval %r from %s, using default", value, source)
        return None
    if interval < 0:
        log.warning("Negative scan interval %r from %s, using default", value, source)
        return None
    return interval


def get_scan_interval(explicit: float | None = None) -> float:
    """Get the rescan interval in seconds.

    Discovery order: explicit argument, WIKILENS_SCAN_INTERVAL, scan_interval
    in the project config file, SCAN_INTERVAL_SECONDS.
    """
    if explicit is not None:
        return explicit

    env_value = os.environ.get("WIKILENS_SCAN_INTERVAL")
    if env_value:
        interval = _parse_interval(env_value, "WIKILENS_SCAN_INTERVAL")
        if interval is not None:
            return interval

    project_config = _discover_project_config()
    if project_config and "scan_interval" in project_config[1]:
        interval = _parse_interval(project_config[1]["scan_interval"], str(project_config[0]))
        if interval is not None:
            return interval

    return SCAN_INTERVAL_SECONDS


def get_document_extension() -> str:
    """Get the document extension (WIKILENS_EXTENSION or config file, default .md)."""
    extension = os.environ.get("WIKILENS_EXTENSION")
    if not extension:
        project_config = _discover_project_config()
        if project_config:
            value = project_config[1].get("extension")
            extension = value if isinstance(value, str) else None

    if not extension:
        return DOCUMENT_EXTENSION
    return extension if extension.startswith(".") else f".{extension}"
