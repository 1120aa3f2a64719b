"""Pytest configuration and fixtures."""

import os
from pathlib import Path

import pytest

from hotload.config import ReloaderConfig
from hotload.reload import Reloader


class ScriptProject:
    """A throwaway project directory of script files.

    Rewriting a file always moves its mtime forward, so change detection
    does not depend on the filesystem's timestamp resolution.
    """

    def __init__(self, root: Path):
        self.root = root

    def write(self, name: str, source: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        previous = path.stat().st_mtime if path.exists() else None
        path.write_text(source)
        if previous is not None:
            self.touch(path, previous + 10)
        return path

    def touch(self, path: Path, mtime: float | None = None) -> float:
        if mtime is None:
            mtime = path.stat().st_mtime + 10
        os.utime(path, (mtime, mtime))
        return mtime

    def config(self, **kwargs) -> ReloaderConfig:
        return ReloaderConfig(root=self.root, **kwargs)

    def reloader(self, **kwargs) -> Reloader:
        return Reloader(self.config(**kwargs))


@pytest.fixture
def project(tmp_path: Path) -> ScriptProject:
    """Create an empty script project."""
    return ScriptProject(tmp_path)
