"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  : static defaults checked into the repo
#   2. .env file           : local developer overrides (not committed)
#   3. Environment vars    : set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# resolved by Settings (layers 2 and 3) on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings
from src.services.filter_pipeline import FilterExecutionConfig
from src.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file cannot be parsed.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "links": {
            "api_host": settings.api_host,
            "api_context": settings.api_context,
        },
        "store": {
            "url": settings.entity_store_url,
            "timeout": settings.entity_store_timeout,
            "fixture_path": settings.catalog_fixture_path,
            "max_concurrency": settings.store_max_concurrency,
        },
        "search": {
            "prefetch_max_hops": settings.prefetch_max_hops,
            "filter_workers": settings.filter_workers,
            "filter_parallel_threshold": settings.filter_parallel_threshold,
        },
        "cache_sync": {
            "interval_seconds": settings.cache_sync_interval_seconds,
            "max_errors": settings.cache_sync_max_errors,
            "taxonomy_cache_ttl": settings.taxonomy_cache_ttl,
        },
        "plugins": {
            "url": settings.plugin_source_url,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def filter_execution_config(settings: Settings) -> FilterExecutionConfig:
    """Worker-pool configuration for the filter pipeline."""
    if settings.filter_workers < 1:
        raise ConfigurationError("filter_workers must be at least 1")
    if settings.filter_parallel_threshold < 1:
        raise ConfigurationError("filter_parallel_threshold must be at least 1")
    return FilterExecutionConfig(
        workers=settings.filter_workers,
        parallel_threshold=settings.filter_parallel_threshold,
    )


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
