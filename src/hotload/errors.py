"""Exception types shared across hotload."""


class HotloadError(Exception):
    """Base class for errors raised by hotload itself."""


class ConfigError(HotloadError):
    """Raised when a configuration file holds an invalid value."""


class LoadError(HotloadError, ImportError):
    """Raised when a required script cannot be located on disk."""

    def __init__(self, name: str, searched: list[str] | None = None):
        self.requested = name
        self.searched = searched or []
        super().__init__(f"cannot load such file -- {name}")
