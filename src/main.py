"""Catalog search FastAPI application entry point.

Wires together all providers and services via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and starts the background cache-sync job.

# ─── STARTUP SEQUENCE ─────────────────────────────────────────────────
#
#   1. Settings() reads .env / environment
#   2. configure_logging() sets up structlog
#   3. create_app() registers middleware and routes
#   4. _lifespan():
#        _build_all()            construct store, directory, registry, ...
#        cache_sync.run_once()   fill plugin registry + group directory
#        cache_sync.start()      periodic refresh in the background
#   5. Requests are served; state lives on app.state
#   6. Shutdown: stop cache sync, close the shared httpx client
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import router as api_router
from src.config.loader import filter_execution_config, load_config
from src.config.settings import Settings
from src.interfaces.entity_store import IEntityStore
from src.interfaces.plugin_source import IPluginSource
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.organizations.group_directory import OrganizationGroupDirectory
from src.providers.plugins.http_plugin_source import HttpPluginSource, StaticPluginSource
from src.providers.store.http_store import HttpEntityStore
from src.providers.store.memory_store import InMemoryEntityStore
from src.providers.taxonomy.store_taxonomy import StoreCategoryTaxonomy
from src.providers.users.static_directory import StaticUserDirectory
from src.services.available_formats import AvailableFormatsGenerator
from src.services.cache_sync import CacheSyncJob
from src.services.catalog_search_service import CatalogSearchService
from src.services.plugin_registry import PluginRegistry
from src.services.result_assembler import ResultAssembler
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings and logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=settings.app_env == "production",
)

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider factories
# ---------------------------------------------------------------------------


def _build_store(app_settings: Settings, http_client: httpx.AsyncClient) -> IEntityStore:
    """Remote store when ``entity_store_url`` is set, else the fixture catalogue."""
    if app_settings.entity_store_url:
        return HttpEntityStore(http_client, app_settings.entity_store_url)
    return InMemoryEntityStore.from_json_file(app_settings.catalog_fixture_path)


def _build_plugin_source(app_settings: Settings, http_client: httpx.AsyncClient) -> IPluginSource:
    if app_settings.plugin_source_url:
        return HttpPluginSource(http_client, app_settings.plugin_source_url)
    return StaticPluginSource()


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    Must run inside the event loop (the store semaphore binds to it).
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.entity_store_timeout)
    store_semaphore = asyncio.Semaphore(app_settings.store_max_concurrency)

    # -- Providers --
    store = _build_store(app_settings, http_client)
    plugin_source = _build_plugin_source(app_settings, http_client)
    directory = OrganizationGroupDirectory(store)
    taxonomy = StoreCategoryTaxonomy(
        store, MemoryCacheProvider(max_size=8, ttl=app_settings.taxonomy_cache_ttl)
    )
    users = StaticUserDirectory()

    # -- Services --
    registry = PluginRegistry(plugin_source)
    assembler = ResultAssembler(
        AvailableFormatsGenerator(app_settings.api_host, app_settings.api_context),
        directory,
        app_settings.api_host,
        app_settings.api_context,
    )
    search_service = CatalogSearchService(
        store=store,
        groups=directory,
        taxonomy=taxonomy,
        plugins=registry,
        assembler=assembler,
        users=users,
        execution=filter_execution_config(app_settings),
        max_hops=app_settings.prefetch_max_hops,
        store_semaphore=store_semaphore,
    )
    cache_sync = CacheSyncJob(
        registry,
        directory,
        taxonomy,
        interval_seconds=app_settings.cache_sync_interval_seconds,
        max_errors=app_settings.cache_sync_max_errors,
    )

    return {
        "http_client": http_client,
        "store": store,
        "plugin_registry": registry,
        "group_directory": directory,
        "search_service": search_service,
        "cache_sync": cache_sync,
        "provider_names": {
            "entity_store": store.get_provider_name(),
            "plugin_source": plugin_source.get_provider_name(),
        },
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    config = load_config(settings=settings)
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    cache_sync: CacheSyncJob = components["cache_sync"]
    failed = await cache_sync.run_once()
    cache_sync.start()

    _logger.info(
        "app_startup",
        version=config.get("app", {}).get("version", "0.1.0"),
        environment=settings.app_env,
        providers=components["provider_names"],
        initial_sync_failures=failed,
    )

    yield

    # -- Shutdown --
    await cache_sync.stop()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Catalog Discovery API",
        version="0.1.0",
        description=(
            "Search a metadata catalogue of data products, facilities and "
            "organisations with text, keyword, organisation, date, bounding-box "
            "and category filters, plus facets."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
