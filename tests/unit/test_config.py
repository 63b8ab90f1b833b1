"""Unit tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import _deep_merge, filter_execution_config, load_config
from src.config.settings import Settings
from src.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestLoadConfig:
    def test_yaml_defaults_merged_with_settings(self, project_root: Path) -> None:
        config = load_config(
            str(project_root / "config" / "config.yaml"),
            settings=_settings(entity_store_url="https://store.example", prefetch_max_hops=2),
        )
        assert config["app"]["name"] == "catalog-discovery"
        assert config["app"]["port"] == 8000
        assert config["store"]["url"] == "https://store.example"
        assert config["search"]["prefetch_max_hops"] == 2
        assert "dataproducts" in config["search"]["profiles"]
        assert config["facets"]["keyword_separator"] == ","

    def test_missing_file_gives_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert config["cache_sync"]["max_errors"] == 18
        assert "facets" not in config

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        broken = tmp_path / "broken.yaml"
        broken.write_text("app: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(broken), settings=_settings())


class TestDeepMerge:
    def test_nested_override(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        _deep_merge(base, {"a": {"b": 10}, "e": 5})
        assert base == {"a": {"b": 10, "c": 2}, "d": 3, "e": 5}

    def test_scalar_replaces_dict(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": "flat"})
        assert base == {"a": "flat"}


class TestFilterExecutionConfig:
    def test_uses_settings(self) -> None:
        config = filter_execution_config(_settings(filter_workers=2, filter_parallel_threshold=50))
        assert config.workers == 2
        assert config.parallel_threshold == 50

    @pytest.mark.parametrize(
        "overrides",
        [{"filter_workers": 0}, {"filter_parallel_threshold": 0}],
    )
    def test_rejects_non_positive(self, overrides: dict) -> None:
        with pytest.raises(ConfigurationError):
            filter_execution_config(_settings(**overrides))
