"""Mounted applications that the reloader cascades reloads into.

An application is an entry script plus the files it depends on. When the
entry script changes the application reloads itself as a whole; when one
of its dependencies changes the reloader asks it to reload too.
"""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from hotload.runtime.loader import expand_path

if TYPE_CHECKING:
    from hotload.reload.reloader import Reloader

logger = logging.getLogger(__name__)


@runtime_checkable
class MountedApp(Protocol):
    """What the reloader needs from an application."""

    name: str
    app_file: Path

    def reload(self) -> None: ...

    def dependencies(self) -> set[Path]: ...


class AppRegistry:
    """The applications currently mounted in the process."""

    def __init__(self, apps: Iterable[MountedApp] = ()):
        self._apps: dict[str, MountedApp] = {}
        for app in apps:
            self.mount(app)

    def mount(self, app: MountedApp) -> MountedApp:
        if app.name in self._apps:
            raise ValueError(f"An application named {app.name!r} is already mounted")
        self._apps[app.name] = app
        logger.info(f"Mounted {app.name} ({app.app_file})")
        return app

    def unmount(self, name: str) -> MountedApp | None:
        return self._apps.pop(name, None)

    def __iter__(self) -> Iterator[MountedApp]:
        return iter(list(self._apps.values()))

    def __len__(self) -> int:
        return len(self._apps)

    def get(self, name: str) -> MountedApp | None:
        return self._apps.get(name)

    def apps_for(self, path: Path) -> list[MountedApp]:
        """Applications whose entry script is ``path``.

        One entry script can define more than one application.
        """
        path = expand_path(path)
        return [app for app in self if expand_path(app.app_file) == path]

    def dependents_of(self, path: Path) -> list[MountedApp]:
        """Applications that list ``path`` among their dependencies."""
        path = expand_path(path)
        return [
            app for app in self if path in {expand_path(dep) for dep in app.dependencies()}
        ]


class ScriptApp:
    """An application made of an entry script and dependency globs.

    Dependency globs are relative to the directory of the entry script.
    Loads go through the reloader so everything the application defines
    is tracked and can be unloaded.
    """

    def __init__(
        self,
        name: str,
        app_file: str | Path,
        reloader: "Reloader",
        dependency_patterns: list[str] | None = None,
    ):
        self.name = name
        self.app_file = expand_path(app_file)
        self.reloader = reloader
        self.dependency_patterns = dependency_patterns or []
        self.reload_count = 0

    @property
    def root(self) -> Path:
        return self.app_file.parent

    def dependencies(self) -> set[Path]:
        deps: set[Path] = set()
        for pattern in self.dependency_patterns:
            deps.update(expand_path(p) for p in self.root.glob(pattern))
        deps.discard(self.app_file)
        return deps

    def load(self) -> None:
        """Boot the application: dependencies first, then the entry script."""
        for dep in sorted(self.dependencies()):
            self.reloader.safe_load(dep)
        self.reloader.safe_load(self.app_file)

    def reload(self) -> None:
        """Refresh changed dependencies, then force a fresh load of the entry script."""
        logger.info(f"Reloading application {self.name}")
        for dep in sorted(self.dependencies()):
            self.reloader.safe_load(dep)
        self.reloader.safe_load(self.app_file, force=True)
        self.reload_count += 1

    def __repr__(self) -> str:
        return f"ScriptApp(name={self.name!r}, app_file={str(self.app_file)!r})"
