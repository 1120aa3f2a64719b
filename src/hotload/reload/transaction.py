"""Loads a single file as an atomic unit.

Either the load completes and what it defined is committed to the
registry, or it fails and every symbol it leaked is removed again before
the failure reaches the caller.
"""

import logging
import time
from pathlib import Path

from hotload.reload.safety import ExclusionPolicy
from hotload.reload.storage import SymbolRegistry
from hotload.reload.watcher import ChangeDetector
from hotload.runtime import ScriptLoader

logger = logging.getLogger(__name__)


class LoadTransaction:
    """Runs prepare / load / commit-or-rollback for one file at a time."""

    def __init__(
        self,
        detector: ChangeDetector,
        registry: SymbolRegistry,
        loader: ScriptLoader,
        policy: ExclusionPolicy,
    ):
        self.detector = detector
        self.registry = registry
        self.loader = loader
        self.policy = policy
        self._in_progress: list[Path] = []

    @property
    def in_progress(self) -> tuple[Path, ...]:
        """Files currently being loaded, outermost first."""
        return tuple(self._in_progress)

    def load(self, file: str | Path, force: bool = False, mtime: float | None = None) -> bool:
        """Load or reload a file if it is new, changed or forced.

        Args:
            file: Script to load; relative names are searched in the load paths.
            force: Load even if the file looks unchanged.
            mtime: Modification time observed by the current detection pass.

        Returns:
            True if the file was executed.

        Raises:
            Exception: Whatever the load raised, after rolling it back.
        """
        began_at = time.perf_counter()
        path = self.loader.resolve(file)
        if not force and not self.detector.changed(path, mtime):
            return False

        if path in self._in_progress:
            logger.debug(f"Skipping {path}, already loading")
            return False

        if self.policy.is_feature_excluded(path):
            executed = self.loader.require(path)
            self.detector.update(path, mtime)
            return executed

        nested = bool(self._in_progress)
        is_new = self.detector.is_new(path)
        self._in_progress.append(path)
        try:
            self.registry.prepare(path, load=self._load_feature)
            self.loader.require(path)
            record = self.registry.commit(path)
        except BaseException:
            if not nested:
                logger.error(f"Failed to load {path}; removing partially defined symbols")
            self.registry.rollback(path)
            raise
        finally:
            self._in_progress.pop()

        self.detector.update(path, mtime)
        # Files first required by this load are fresh; a later scan in this pass must skip them
        for feature in record.features:
            if self.detector.is_new(feature):
                self.detector.update(feature)
        elapsed = (time.perf_counter() - began_at) * 1000
        logger.debug(f"{'Loaded' if is_new else 'Reloaded'} {path} in {elapsed:.1f}ms")
        return True

    def _load_feature(self, feature: Path) -> None:
        self.load(feature, force=True)
