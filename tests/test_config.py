"""Tests for configuration loading."""

from pathlib import Path

import pytest

from hotload.config import AppConfig, ReloaderConfig, config_from_mapping, load_config
from hotload.errors import ConfigError, HotloadError


class TestReloaderConfig:
    """Tests for ReloaderConfig defaults and path handling."""

    def test_defaults(self, tmp_path: Path):
        """Test the root is the only load path by default."""
        config = ReloaderConfig(root=tmp_path)

        assert config.load_paths == [tmp_path]
        assert config.patterns == ["*.py"]
        assert config.cooldown == 1.0
        assert tmp_path / "tests" in config.exclude_paths
        assert tmp_path / "db" in config.exclude_paths

    def test_relative_paths_resolve_against_root(self, tmp_path: Path):
        """Test load paths, excluded paths and app files are made absolute."""
        config = ReloaderConfig(
            root=tmp_path,
            load_paths=[Path("lib"), Path("app")],
            exclude_paths=[Path("vendor")],
            apps=[AppConfig(name="web", file=Path("web/app.py"))],
        )

        assert config.load_paths == [tmp_path / "lib", tmp_path / "app"]
        assert config.exclude_paths == [tmp_path / "vendor"]
        assert config.apps[0].file == tmp_path / "web" / "app.py"

    def test_exclusion_rules(self, tmp_path: Path):
        """Test the exclusion rules carry the configured lists."""
        config = ReloaderConfig(
            root=tmp_path, exclude_symbols=["Base"], include_symbols=["Base.Cache"]
        )

        rules = config.exclusion_rules()

        assert rules.exclude_symbols == ["Base"]
        assert rules.include_symbols == ["Base.Cache"]
        assert rules.exclude_paths == config.exclude_paths


class TestLoadConfig:
    """Tests for reading hotload.toml."""

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        """Test a missing file is rooted at its directory."""
        config = load_config(tmp_path / "hotload.toml")

        assert config.root == tmp_path
        assert config.load_paths == [tmp_path]

    def test_full_file(self, tmp_path: Path):
        """Test every supported key is read."""
        path = tmp_path / "hotload.toml"
        path.write_text(
            "[hotload]\n"
            'root = "project"\n'
            'load_paths = ["lib"]\n'
            'patterns = ["*.rbx", "*.py"]\n'
            'exclude_paths = ["lib/vendor"]\n'
            'exclude_symbols = ["Base"]\n'
            'include_symbols = ["Base.Plugin"]\n'
            "cooldown = 0\n"
            "\n"
            "[[hotload.apps]]\n"
            'name = "admin"\n'
            'file = "admin/app.py"\n'
            'dependencies = ["models/*.py"]\n'
        )

        config = load_config(path)

        root = tmp_path / "project"
        assert config.root == root
        assert config.load_paths == [root / "lib"]
        assert config.patterns == ["*.rbx", "*.py"]
        assert config.exclude_paths == [root / "lib" / "vendor"]
        assert config.exclude_symbols == ["Base"]
        assert config.include_symbols == ["Base.Plugin"]
        assert config.cooldown == 0.0
        assert config.apps == [
            AppConfig(name="admin", file=root / "admin" / "app.py", dependencies=["models/*.py"])
        ]

    def test_file_without_table_gives_defaults(self, tmp_path: Path):
        """Test a file with no [hotload] table uses the defaults."""
        path = tmp_path / "hotload.toml"
        path.write_text('[other]\nkey = "value"\n')

        config = load_config(path)

        assert config.root == tmp_path
        assert config.cooldown == 1.0

    def test_invalid_toml(self, tmp_path: Path):
        """Test a syntax error is reported as a ConfigError."""
        path = tmp_path / "hotload.toml"
        path.write_text("[hotload\n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)

    def test_hotload_must_be_a_table(self, tmp_path: Path):
        """Test a scalar hotload key is rejected."""
        path = tmp_path / "hotload.toml"
        path.write_text("hotload = 3\n")

        with pytest.raises(ConfigError):
            load_config(path)


class TestConfigFromMapping:
    """Tests for validating the [hotload] table."""

    @pytest.mark.parametrize(
        "data",
        [
            {"root": 1},
            {"load_paths": "lib"},
            {"exclude_symbols": ["Base", 2]},
            {"cooldown": -1},
            {"cooldown": "fast"},
            {"cooldown": True},
            {"apps": {"name": "web"}},
            {"apps": ["web"]},
            {"apps": [{"name": "web"}]},
            {"apps": [{"name": "web", "file": "app.py", "dependencies": "*.py"}]},
        ],
    )
    def test_rejects_bad_values(self, tmp_path: Path, data: dict):
        """Test values of the wrong type raise ConfigError."""
        with pytest.raises(ConfigError):
            config_from_mapping(data, base_dir=tmp_path)

    def test_config_error_is_a_hotload_error(self):
        """Test ConfigError can be caught as HotloadError."""
        assert issubclass(ConfigError, HotloadError)

    def test_integer_cooldown(self, tmp_path: Path):
        """Test an integer cooldown is accepted as seconds."""
        config = config_from_mapping({"cooldown": 5}, base_dir=tmp_path)

        assert config.cooldown == 5.0
        assert isinstance(config.cooldown, float)
