"""Loaded-unit registry: executes script files into a SymbolSpace.

Scripts pull in other scripts with the ``require`` builtin, which behaves
like a once-only include: a unit that is already loaded (or is in the
middle of loading, for circular requires) is not executed again until it
has been evicted.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from hotload.errors import LoadError
from hotload.runtime.space import SymbolSpace

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"


def expand_path(path: str | Path) -> Path:
    """Return an absolute, normalised path without touching the filesystem."""
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


class ScriptLoader:
    """Tracks which script units are loaded and executes new ones."""

    def __init__(self, space: SymbolSpace, load_paths: Iterable[str | Path] = ()):
        self.space = space
        self.load_paths = [expand_path(p) for p in load_paths]
        self._features: dict[Path, None] = {}
        self._loading: set[Path] = set()

        space.add_builtin("require", self.require)

    def resolve(self, name: str | Path) -> Path:
        """Find the file a script name refers to.

        Absolute names are returned as-is. Relative names are searched for in
        the load paths, with the ``.py`` suffix added when it is missing.
        A name that cannot be found is expanded against the working
        directory so the eventual error names a concrete path.
        """
        path = Path(os.path.expanduser(os.fspath(name)))
        if path.is_absolute():
            return expand_path(path)

        candidates = [path]
        if path.suffix != SOURCE_SUFFIX:
            candidates.append(path.with_name(path.name + SOURCE_SUFFIX))

        for root in self.load_paths:
            for candidate in candidates:
                found = root / candidate
                if found.is_file():
                    return expand_path(found)
        return expand_path(path)

    def loaded(self) -> set[Path]:
        """Return the set of currently loaded units."""
        return set(self._features)

    def is_loaded(self, path: str | Path) -> bool:
        return expand_path(path) in self._features

    def evict(self, path: str | Path) -> bool:
        """Forget a loaded unit so the next require executes it again."""
        path = expand_path(path)
        if path not in self._features:
            return False
        del self._features[path]
        logger.debug(f"Evicted {path}")
        return True

    def require(self, name: str | Path) -> bool:
        """Execute a script unit unless it is already loaded.

        Returns:
            True if the unit was executed, False if it was already loaded
            or is currently being loaded further up the stack.

        Raises:
            LoadError: If the script does not exist.
            Exception: Whatever the script raised while executing.
        """
        path = self.resolve(name)
        if path in self._features:
            return False
        if path in self._loading:
            logger.debug(f"Circular require of {path} ignored")
            return False

        try:
            source = path.read_bytes()
        except FileNotFoundError as e:
            raise LoadError(os.fspath(name), [str(p) for p in self.load_paths]) from e

        self._loading.add(path)
        try:
            self._execute(path, source)
        finally:
            self._loading.discard(path)

        self._features[path] = None
        return True

    def _execute(self, path: Path, source: bytes) -> None:
        namespace = self.space.namespace
        previous = namespace.get("__file__")
        namespace["__file__"] = str(path)
        try:
            code = compile(source, str(path), "exec")
            exec(code, namespace)
        finally:
            if previous is None:
                namespace.pop("__file__", None)
            else:
                namespace["__file__"] = previous
