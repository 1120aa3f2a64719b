"""Per-file bookkeeping of what each load introduced.

The runtime has no hook that reports what executing one file defined, so
it is inferred by differencing: the symbol space and the loaded-unit set
are snapshot right before a load and compared with their state after it.
Whatever is new belongs to the file that was loaded.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from hotload.reload.safety import ExclusionPolicy
from hotload.runtime import ScriptLoader, SymbolSpace

logger = logging.getLogger(__name__)


@dataclass
class FileLoadRecord:
    """Symbols and sub-features that came into existence while loading a file."""

    owner: Path
    symbols: set[str] = field(default_factory=set)
    features: set[Path] = field(default_factory=set)


@dataclass(frozen=True)
class PendingTransaction:
    """State captured immediately before a load attempt."""

    symbols: frozenset[str]
    features: frozenset[Path]


class SymbolRegistry:
    """Owns the FileLoadRecord of every tracked file.

    A symbol is recorded under at most one file: the previous record of a
    file is always removed before a new load of it is prepared.
    """

    def __init__(self, space: SymbolSpace, loader: ScriptLoader, policy: ExclusionPolicy):
        self.space = space
        self.loader = loader
        self.policy = policy
        self._records: dict[Path, FileLoadRecord] = {}
        self._pending: dict[Path, PendingTransaction] = {}

    def record(self, path: Path) -> FileLoadRecord | None:
        return self._records.get(path)

    def records(self) -> dict[Path, FileLoadRecord]:
        """Return a copy of all load records."""
        return {
            path: FileLoadRecord(path, set(rec.symbols), set(rec.features))
            for path, rec in self._records.items()
        }

    def is_pending(self, path: Path) -> bool:
        return path in self._pending

    def remove_symbol(self, symbol: str) -> bool:
        """Delete a symbol from the space unless the policy protects it."""
        if not self.policy.is_symbol_removable(symbol):
            logger.debug(f"Kept excluded symbol: {symbol}")
            return False
        removed = self.space.remove(symbol)
        if removed:
            logger.debug(f"Removed symbol: {symbol}")
        return removed

    def remove_feature(self, path: Path) -> None:
        if not self.policy.is_feature_excluded(path):
            self.loader.evict(path)

    def remove(self, path: Path) -> FileLoadRecord | None:
        """Unload everything recorded for a file and drop its record."""
        record = self._records.pop(path, None)
        if record is None:
            return None
        # Nested names go first so their owners are still resolvable
        for symbol in sorted(record.symbols, key=lambda s: s.count("."), reverse=True):
            self.remove_symbol(symbol)
        for feature in record.features:
            self.remove_feature(feature)
        return record

    def prepare(self, path: Path, load: Callable[[Path], object]) -> None:
        """Get ready to (re)load a file.

        Args:
            path: File about to be loaded.
            load: Called with each sub-feature of the previous load so it is
                refreshed before its parent runs again.
        """
        record = self.remove(path)
        old_features = self.loader.loaded()
        self._pending[path] = PendingTransaction(
            symbols=frozenset(self.space.snapshot()),
            features=frozenset(old_features),
        )

        if record is not None and record.features:
            for feature in sorted(record.features):
                load(feature)
            # Symbols of refreshed sub-features are owned by their own records
            self._pending[path] = PendingTransaction(
                symbols=frozenset(self.space.snapshot()),
                features=self._pending[path].features,
            )

        if path in old_features:
            self.loader.evict(path)

    def _new_symbols(self, pending: PendingTransaction) -> set[str]:
        return self.space.snapshot() - pending.symbols

    def commit(self, path: Path) -> FileLoadRecord:
        """Store what the load of ``path`` introduced as its record."""
        pending = self._pending.pop(path)
        features = self.loader.loaded() - pending.features - {path}
        record = FileLoadRecord(path, self._new_symbols(pending), features)
        self._records[path] = record
        logger.debug(
            f"Committed {path}: {len(record.symbols)} symbols, {len(record.features)} features"
        )
        return record

    def rollback(self, path: Path) -> set[str]:
        """Remove whatever a failed load of ``path`` left in the space.

        Returns:
            The symbols that were found leaking out of the failed load.
        """
        pending = self._pending.pop(path, None)
        if pending is None:
            return set()
        leaked = self._new_symbols(pending)
        for symbol in sorted(leaked, key=lambda s: s.count("."), reverse=True):
            self.remove_symbol(symbol)
        # Sub-features that did load must run again next time, their symbols are gone
        for feature in self.loader.loaded() - pending.features:
            self.remove_feature(feature)
        return leaked

    def clear(self) -> None:
        """Unload every tracked file."""
        for path in list(self._records):
            self.remove(path)
            self.remove_feature(path)
        self._records = {}
        self._pending = {}
