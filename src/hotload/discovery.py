"""Enumeration of candidate source files under the load paths."""

import fnmatch
import logging
from collections.abc import Iterable
from pathlib import Path

from hotload.runtime.loader import expand_path

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ["*.py"]
DEFAULT_IGNORE_PATTERNS = [
    "__pycache__",
    "*.pyc",
    ".git",
    ".venv",
    "*.egg-info",
]


def _should_ignore(path: Path, ignore_patterns: list[str]) -> bool:
    return any(
        fnmatch.fnmatch(part, pattern) for part in path.parts for pattern in ignore_patterns
    )


def discover(
    load_paths: Iterable[str | Path],
    patterns: list[str] | None = None,
    ignore_patterns: list[str] | None = None,
) -> list[Path]:
    """List source files under each load path.

    Only directory entries are read; files are not stat-ed here, so the
    change detector's stat stays the only one per file per pass.

    Args:
        load_paths: Root directories to search recursively.
        patterns: Filename globs to include (default ``*.py``).
        ignore_patterns: Path components to skip.

    Returns:
        Absolute paths, sorted within each root, without duplicates.
    """
    patterns = patterns or DEFAULT_PATTERNS
    ignore_patterns = DEFAULT_IGNORE_PATTERNS if ignore_patterns is None else ignore_patterns

    files: dict[Path, None] = {}
    for root in load_paths:
        root = expand_path(root)
        if not root.is_dir():
            logger.debug(f"Load path {root} is not a directory, skipping")
            continue

        found: set[Path] = set()
        for pattern in patterns:
            for path in root.rglob(pattern):
                if _should_ignore(path.relative_to(root), ignore_patterns):
                    continue
                found.add(expand_path(path))

        for path in sorted(found):
            files.setdefault(path, None)

    return list(files)
