"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values come from two sources, in priority order:
#
#   1. Environment variables, e.g. ENTITY_STORE_URL=http://store:8080/api
#   2. The .env file in the working directory
#
# Field `entity_store_url` maps to env var `ENTITY_STORE_URL`.  Defaults
# below apply when neither source sets a field.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Catalog search settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    # === Public links ===
    # Prefix of every href in search results (detail pages, execute links).
    api_host: str = "http://localhost:8000"
    api_context: str = "/api/v1"

    # === Entity store ===
    # Empty URL = use the JSON fixture catalogue in catalog_fixture_path.
    entity_store_url: str = ""
    entity_store_timeout: float = 30.0
    catalog_fixture_path: str = "config/catalog.json"
    # Cap on concurrent store calls for the whole process.
    store_max_concurrency: int = 18

    # === Conversion plugins ===
    # Empty URL = no conversion plugins.
    plugin_source_url: str = ""

    # === Search execution ===
    # Unset = follow each profile's deepest relation chain.
    prefetch_max_hops: int | None = None
    filter_workers: int = 4
    filter_parallel_threshold: int = 100

    # === Background cache sync ===
    cache_sync_interval_seconds: float = 300.0
    cache_sync_max_errors: int = 18
    taxonomy_cache_ttl: int = 300
