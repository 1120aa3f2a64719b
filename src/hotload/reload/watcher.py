"""Modification-time change detection for hot-reload.

Each pass stats every candidate file exactly once and compares the result
against the last baseline recorded for it. Baselines are only written by
the reloader after a successful load, so a file whose load failed keeps
being reported until it loads cleanly.

While a scan is running every stat result is remembered, so loads that
happen during the pass (sub-features, application dependencies) reuse the
scan's observation instead of touching the file again.
"""

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from hotload.runtime.loader import expand_path

logger = logging.getLogger(__name__)

StatFunc = Callable[[Path], os.stat_result]


@dataclass(frozen=True)
class FileChange:
    """A file found new or modified during a scan."""

    path: Path
    mtime: float
    is_new: bool

    @property
    def change_type(self) -> str:
        return "created" if self.is_new else "modified"


class ChangeDetector:
    """Keeps the last known modification time of every tracked file."""

    def __init__(self, stat: StatFunc = os.stat):
        self._stat = stat
        self._mtimes: dict[Path, float] = {}
        # Stat results of the running scan; None outside of a scan
        self._observed: dict[Path, float | None] | None = None

    def _current_mtime(self, path: Path) -> float | None:
        if self._observed is not None and path in self._observed:
            return self._observed[path]
        try:
            mtime: float | None = self._stat(path).st_mtime
        except OSError:
            # Vanished between enumeration and stat
            mtime = None
        if self._observed is not None:
            self._observed[path] = mtime
        return mtime

    def mtime(self, path: Path) -> float | None:
        """Return the recorded baseline for a file, if any."""
        return self._mtimes.get(expand_path(path))

    def is_new(self, path: Path) -> bool:
        return expand_path(path) not in self._mtimes

    def changed(self, path: Path, mtime: float | None = None) -> bool:
        """Check if a file is new or newer than its baseline.

        Args:
            path: File to check.
            mtime: Modification time already observed this pass; when given
                the file is not stat-ed again.
        """
        path = expand_path(path)
        previous = self._mtimes.get(path)
        if previous is None:
            return True
        if mtime is None:
            mtime = self._current_mtime(path)
            if mtime is None:
                return False
        return mtime > previous

    def update(self, path: Path, mtime: float | None = None) -> None:
        """Record a new baseline, stat-ing the file when no mtime is given."""
        path = expand_path(path)
        if mtime is None:
            mtime = self._current_mtime(path)
            if mtime is None:
                return
        self._mtimes[path] = mtime

    def scan(self, candidates: Iterable[Path]) -> Iterator[FileChange]:
        """Yield new and modified files among the candidates.

        The comparison for each file happens when the caller asks for the
        next item, so a file refreshed by an earlier load in the same pass
        is correctly seen as unchanged. Never writes baselines.

        Until the generator is exhausted or closed, every stat the detector
        makes is remembered, so each file is stat-ed at most once per scan.
        """
        self._observed = {}
        seen: set[Path] = set()
        try:
            for candidate in candidates:
                path = expand_path(candidate)
                if path in seen:
                    continue
                seen.add(path)

                mtime = self._current_mtime(path)
                if mtime is None:
                    continue

                previous = self._mtimes.get(path)
                if previous is None:
                    logger.debug(f"Detected a new file {path}")
                    yield FileChange(path=path, mtime=mtime, is_new=True)
                elif mtime > previous:
                    logger.debug(f"Detected a modified file {path}")
                    yield FileChange(path=path, mtime=mtime, is_new=False)
        finally:
            self._observed = None

    def tracked(self) -> dict[Path, float]:
        """Return a copy of the baseline table."""
        return dict(self._mtimes)

    def clear(self) -> None:
        self._mtimes.clear()
