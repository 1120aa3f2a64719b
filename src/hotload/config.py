"""Configuration for hotload.

Settings are read from the ``[hotload]`` table of a TOML file::

    [hotload]
    root = "."
    load_paths = ["lib", "app"]
    exclude_symbols = ["Base"]
    cooldown = 1.0

    [[hotload.apps]]
    name = "admin"
    file = "admin/app.py"
    dependencies = ["models/*.py"]
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli

from hotload.discovery import DEFAULT_IGNORE_PATTERNS, DEFAULT_PATTERNS
from hotload.errors import ConfigError
from hotload.runtime.loader import expand_path

if TYPE_CHECKING:
    from hotload.reload.safety import ExclusionRules

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "hotload.toml"
DEFAULT_EXCLUDED_DIRS = ["test", "tests", "spec", "features", "tmp", "config", "public", "db"]


@dataclass
class AppConfig:
    """A mounted application: entry script plus dependency globs."""

    name: str
    file: Path
    dependencies: list[str] = field(default_factory=list)


@dataclass
class ReloaderConfig:
    """Everything needed to build a Reloader.

    Relative paths are resolved against ``root``.
    """

    root: Path = field(default_factory=Path.cwd)
    load_paths: list[Path] = field(default_factory=list)
    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    ignore_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    exclude_paths: list[Path] = field(
        default_factory=lambda: [Path(d) for d in DEFAULT_EXCLUDED_DIRS]
    )
    exclude_symbols: list[str] = field(default_factory=list)
    include_symbols: list[str] = field(default_factory=list)

    # Minimum seconds between reload passes triggered by requests; None disables them
    cooldown: float | None = 1.0

    apps: list[AppConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.root = expand_path(self.root)
        self.load_paths = [self._absolute(p) for p in self.load_paths] or [self.root]
        self.exclude_paths = [self._absolute(p) for p in self.exclude_paths]
        for app in self.apps:
            app.file = self._absolute(app.file)

    def _absolute(self, path: str | Path) -> Path:
        path = Path(path).expanduser()
        return expand_path(path if path.is_absolute() else self.root / path)

    def exclusion_rules(self) -> "ExclusionRules":
        from hotload.reload.safety import ExclusionRules

        return ExclusionRules(
            exclude_paths=list(self.exclude_paths),
            exclude_symbols=list(self.exclude_symbols),
            include_symbols=list(self.include_symbols),
        )


def _string_list(data: dict[str, Any], key: str) -> list[str] | None:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"hotload.{key} must be a list of strings")
    return value


def _parse_apps(raw: Any) -> list[AppConfig]:
    if not isinstance(raw, list):
        raise ConfigError("hotload.apps must be an array of tables")

    apps: list[AppConfig] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ConfigError("hotload.apps entries must be tables")
        name, file = entry.get("name"), entry.get("file")
        if not isinstance(name, str) or not isinstance(file, str):
            raise ConfigError("hotload.apps entries need a string 'name' and 'file'")
        deps = _string_list(entry, "dependencies") or []
        apps.append(AppConfig(name=name, file=Path(file), dependencies=deps))
    return apps


def config_from_mapping(data: dict[str, Any], base_dir: Path | None = None) -> ReloaderConfig:
    """Build a config from the contents of a ``[hotload]`` table.

    Args:
        data: Parsed table.
        base_dir: Directory a relative ``root`` is resolved against.

    Raises:
        ConfigError: If a value has the wrong type.
    """
    base_dir = base_dir or Path.cwd()
    kwargs: dict[str, Any] = {}

    root = data.get("root", ".")
    if not isinstance(root, str):
        raise ConfigError("hotload.root must be a string")
    kwargs["root"] = base_dir / root

    for key in ("load_paths", "exclude_paths"):
        values = _string_list(data, key)
        if values is not None:
            kwargs[key] = [Path(v) for v in values]

    for key in ("patterns", "ignore_patterns", "exclude_symbols", "include_symbols"):
        values = _string_list(data, key)
        if values is not None:
            kwargs[key] = values

    if "cooldown" in data:
        cooldown = data["cooldown"]
        if isinstance(cooldown, bool) or not isinstance(cooldown, int | float) or cooldown < 0:
            raise ConfigError("hotload.cooldown must be a non-negative number")
        kwargs["cooldown"] = float(cooldown)

    if "apps" in data:
        kwargs["apps"] = _parse_apps(data["apps"])

    return ReloaderConfig(**kwargs)


def load_config(path: str | Path | None = None) -> ReloaderConfig:
    """Read configuration from a TOML file.

    A missing file gives the defaults, rooted at the file's directory.
    """
    path = expand_path(path or DEFAULT_CONFIG_FILE)
    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return ReloaderConfig(root=path.parent)

    try:
        data = tomli.loads(path.read_text())
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    table = data.get("hotload", {})
    if not isinstance(table, dict):
        raise ConfigError("[hotload] must be a table")
    return config_from_mapping(table, base_dir=path.parent)
