"""Reload coordinator.

Drives one detection pass over the project's files and decides, for every
new or modified file, what has to be loaded again:

- an application entry script is handed to its application, which knows
  how to reload itself as a whole
- any other file is loaded through a LoadTransaction, then every mounted
  application depending on it is reloaded too

Checks are pull-based: nothing happens in the background, a pass runs
only when the caller asks for one.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from hotload import __version__
from hotload.apps import AppRegistry, MountedApp, ScriptApp
from hotload.config import ReloaderConfig
from hotload.discovery import discover
from hotload.reload.safety import ExclusionPolicy
from hotload.reload.storage import FileLoadRecord, SymbolRegistry
from hotload.reload.transaction import LoadTransaction
from hotload.reload.watcher import ChangeDetector, FileChange, StatFunc
from hotload.runtime import ScriptLoader, SymbolSpace, expand_path

logger = logging.getLogger(__name__)


@dataclass
class ReloadReport:
    """What one reload pass did."""

    changes: list[FileChange] = field(default_factory=list)
    loaded: list[Path] = field(default_factory=list)
    reloaded_apps: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class Reloader:
    """Owns the reload state of a process.

    The symbol space and the tracked-file table are shared by every thread
    of the process. ``lock`` is held for the whole of a pass; callers in a
    multi-threaded host take it around anything else they do with the
    reloader.
    """

    def __init__(
        self,
        config: ReloaderConfig | None = None,
        apps: AppRegistry | None = None,
        space: SymbolSpace | None = None,
        stat: StatFunc = os.stat,
    ):
        self.config = config or ReloaderConfig()
        self.apps = apps or AppRegistry()
        self.space = space or SymbolSpace()
        self.policy = ExclusionPolicy(self.config.exclusion_rules(), root=self.config.root)
        self.loader = ScriptLoader(self.space, self.config.load_paths)
        self.detector = ChangeDetector(stat=stat)
        self.registry = SymbolRegistry(self.space, self.loader, self.policy)
        self.transaction = LoadTransaction(self.detector, self.registry, self.loader, self.policy)
        self.lock = threading.RLock()

        self._reload_history: list[ReloadReport] = []

    @classmethod
    def from_config(cls, config: ReloaderConfig) -> "Reloader":
        """Build a reloader and mount the applications the config lists."""
        reloader = cls(config)
        for app in config.apps:
            reloader.mount(ScriptApp(app.name, app.file, reloader, app.dependencies))
        return reloader

    def mount(self, app: MountedApp) -> MountedApp:
        return self.apps.mount(app)

    def files(self) -> list[Path]:
        """Every file a pass looks at, excluded directories left out."""
        candidates: dict[Path, None] = {}
        discovered = discover(
            self.config.load_paths, self.config.patterns, self.config.ignore_patterns
        )
        for path in discovered:
            candidates.setdefault(path, None)
        for app in self.apps:
            candidates.setdefault(expand_path(app.app_file), None)
        for app in self.apps:
            for dep in sorted(app.dependencies()):
                candidates.setdefault(expand_path(dep), None)

        return [path for path in candidates if not self.policy.is_path_excluded(path)]

    def safe_load(self, file: str | Path, force: bool = False) -> bool:
        """Load a file through a transaction; see LoadTransaction.load."""
        with self.lock:
            return self.transaction.load(file, force=force)

    def reload(self) -> ReloadReport:
        """Run one pass, reloading everything that is new or changed.

        Raises:
            Exception: The first load failure, after it has been rolled back.
                Files after it are picked up by the next pass.
        """
        report = ReloadReport()
        with self.lock:
            changes = self.detector.scan(self.files())
            try:
                for change in changes:
                    report.changes.append(change)
                    self._reload_change(change, report)
            finally:
                # Ends the scan even when a load raised mid-pass
                changes.close()
                self._reload_history.append(report)

        if report.loaded or report.reloaded_apps:
            logger.info(
                f"Reload pass: {len(report.loaded)} files, "
                f"{len(report.reloaded_apps)} apps reloaded (hotload v{__version__})"
            )
        return report

    def _reload_change(self, change: FileChange, report: ReloadReport) -> None:
        apps = self.apps.apps_for(change.path)
        if apps:
            for app in apps:
                app.reload()
                report.reloaded_apps.append(app.name)
            self.detector.update(change.path, change.mtime)
            return

        if self.transaction.load(change.path, force=change.is_new, mtime=change.mtime):
            report.loaded.append(change.path)
        else:
            logger.warning(f"{change.path} changed but was not reloaded; restart to pick it up")

        for app in self.apps.dependents_of(change.path):
            app.reload()
            report.reloaded_apps.append(app.name)

    def changed(self) -> bool:
        """Check whether any file is new or modified, without loading anything."""
        with self.lock:
            changes = list(self.detector.scan(self.files()))
        return bool(changes)

    def clear(self) -> None:
        """Forget every baseline and unload everything that was tracked."""
        with self.lock:
            self.detector.clear()
            self.registry.clear()
        logger.info("Reloader cleared")

    def lock_symbols(self) -> list[str]:
        """Protect everything defined so far, and every app name, from unloading.

        Returns:
            The prefixes that were added to the exclusion list.
        """
        with self.lock:
            roots = {symbol.split(".")[0] for symbol in self.space.snapshot()}
            roots.update(app.name for app in self.apps)
            prefixes = sorted(roots)
            self.policy.exclude_symbol(*prefixes)
        return prefixes

    def remove_symbol(self, symbol: str) -> bool:
        with self.lock:
            return self.registry.remove_symbol(symbol)

    def remove_feature(self, path: str | Path) -> None:
        with self.lock:
            self.registry.remove_feature(expand_path(path))

    def tracked_files(self) -> dict[Path, float]:
        with self.lock:
            return self.detector.tracked()

    def records(self) -> dict[Path, FileLoadRecord]:
        with self.lock:
            return self.registry.records()

    def get_reload_history(self, limit: int = 10) -> list[ReloadReport]:
        """Get the reports of the most recent passes.

        Args:
            limit: Maximum number of reports to return.
        """
        return self._reload_history[-limit:]
