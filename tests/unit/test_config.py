"""Unit tests for studyhost.config."""
from __future__ import annotations

from pathlib import Path

import pytest

from studyhost.config import RuntimeConfig, load_config
from studyhost.errors import ConfigError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "studyhost.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestRuntimeConfig:
    def test_defaults(self) -> None:
        config = RuntimeConfig()
        assert config.plugin_root == Path("./studies")
        assert config.extensions == (".py",)
        assert config.ignore_hidden is True
        assert config.drain_yield_seconds == 0.01
        assert config.watch_debounce_seconds == 0.25
        assert config.log_level == "INFO"

    def test_from_mapping_coerces_values(self) -> None:
        config = RuntimeConfig.from_mapping(
            {"plugin_root": "~/studies", "extensions": ["py", ".study"], "ignore_hidden": "no", "log_level": "debug"}
        )
        assert config.plugin_root == Path("~/studies").expanduser()
        assert config.extensions == (".py", ".study")
        assert config.ignore_hidden is False
        assert config.log_level == "DEBUG"

    def test_unknown_keys_are_kept_as_extra(self) -> None:
        assert RuntimeConfig.from_mapping({"theme": "dark"}).extra == {"theme": "dark"}

    @pytest.mark.parametrize(
        "raw",
        [
            {"drain_yield_seconds": -1},
            {"drain_yield_seconds": "soon"},
            {"log_level": "LOUD"},
            {"extensions": []},
        ],
    )
    def test_invalid_values(self, raw: dict) -> None:
        with pytest.raises(ConfigError):
            RuntimeConfig.from_mapping(raw)

    def test_with_overrides_skips_none(self) -> None:
        config = RuntimeConfig().with_overrides(plugin_root="other", log_level=None)
        assert config.plugin_root == Path("other")
        assert config.log_level == "INFO"

    def test_to_dict(self) -> None:
        assert RuntimeConfig().to_dict()["extensions"] == [".py"]


class TestLoadConfig:
    def test_section(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "studyhost:\n  plugin_root: plugins\n  drain_yield_seconds: 0.5\n")
        config = load_config(path, environ={})
        assert config.plugin_root == Path("plugins")
        assert config.drain_yield_seconds == 0.5

    def test_top_level(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "log_level: WARNING\n"), environ={})
        assert config.log_level == "WARNING"

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_config(_write(tmp_path, ""), environ={}) == RuntimeConfig()

    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "studyhost:\n  plugin_root: plugins\n")
        config = load_config(
            path,
            environ={"STUDYHOST_PLUGIN_ROOT": "/srv/studies", "STUDYHOST_DRAIN_YIELD": "0"},
        )
        assert config.plugin_root == Path("/srv/studies")
        assert config.drain_yield_seconds == 0.0

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="does not exist"):
            load_config(tmp_path / "nope.yaml", environ={})

    def test_default_file_is_optional(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_config(environ={}) == RuntimeConfig()

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, "studyhost: [unclosed\n"), environ={})

    def test_non_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"), environ={})
