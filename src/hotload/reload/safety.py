"""Exclusion rules for the reloader.

Keeps trusted directories out of change detection and protects symbols
that must survive an unload (framework classes, anything locked at boot).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from hotload.config import DEFAULT_EXCLUDED_DIRS
from hotload.runtime.loader import expand_path

logger = logging.getLogger(__name__)


@dataclass
class ExclusionRules:
    """Path and symbol exclusions for a project."""

    # Directories whose files are never scanned or unloaded
    exclude_paths: list[Path] = field(default_factory=list)

    # Symbol name prefixes that are never removed...
    exclude_symbols: list[str] = field(default_factory=list)

    # ...unless they also match one of these
    include_symbols: list[str] = field(default_factory=list)

    @classmethod
    def for_root(cls, root: Path) -> "ExclusionRules":
        """Default rules: the usual non-code directories under ``root``."""
        return cls(exclude_paths=[root / name for name in DEFAULT_EXCLUDED_DIRS])


class ExclusionPolicy:
    """Answers whether a path is scanned and whether a symbol may be removed.

    Rules are set up once at boot; the mutators below are administrative
    and must not be called while a reload pass is running.
    """

    def __init__(self, rules: ExclusionRules | None = None, root: Path | None = None):
        self.root = expand_path(root or Path.cwd())
        rules = rules or ExclusionRules.for_root(self.root)
        self.exclude_paths = [expand_path(p) for p in rules.exclude_paths]
        self.exclude_symbols = list(rules.exclude_symbols)
        self.include_symbols = list(rules.include_symbols)

    def is_path_excluded(self, path: Path) -> bool:
        """Check if a file lives under one of the excluded directories."""
        path = expand_path(path)
        return any(path.is_relative_to(excluded) for excluded in self.exclude_paths)

    def is_feature_excluded(self, path: Path) -> bool:
        """Check if a file should be loaded without any tracking.

        Files outside the project root are treated as trusted third-party code.
        """
        path = expand_path(path)
        return not path.is_relative_to(self.root) or self.is_path_excluded(path)

    def is_symbol_removable(self, symbol: str) -> bool:
        """Check if unloading is allowed to delete a symbol."""
        if not _matches_any(symbol, self.exclude_symbols):
            return True
        return _matches_any(symbol, self.include_symbols)

    def exclude_path(self, *paths: str | Path) -> None:
        for path in paths:
            path = Path(path)
            if not path.is_absolute():
                path = self.root / path
            self.exclude_paths.append(expand_path(path))

    def exclude_symbol(self, *prefixes: str) -> None:
        for prefix in prefixes:
            if prefix and prefix not in self.exclude_symbols:
                self.exclude_symbols.append(prefix)

    def include_symbol(self, *prefixes: str) -> None:
        for prefix in prefixes:
            if prefix and prefix not in self.include_symbols:
                self.include_symbols.append(prefix)


def _matches_any(symbol: str, prefixes: list[str]) -> bool:
    return any(symbol.startswith(prefix) for prefix in prefixes)
