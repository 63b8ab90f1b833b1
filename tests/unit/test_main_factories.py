"""Unit tests for factory functions in src/main.py.

Covers store and plugin-source selection, the full ``_build_all``
assembly, and a complete startup/shutdown cycle of ``create_app`` over the
fixture catalogue, so no network is required.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.config.settings import Settings


def _settings(**overrides) -> Settings:
    """Settings that ignore any local .env file."""
    defaults = {"app_env": "test", "cache_sync_interval_seconds": 3600.0}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


# ======================================================================
# Provider selection
# ======================================================================


class TestBuildStore:
    def test_http_store_when_url_set(self) -> None:
        from src.main import _build_store
        from src.providers.store.http_store import HttpEntityStore

        store = _build_store(_settings(entity_store_url="https://store.example"), httpx.AsyncClient())
        assert isinstance(store, HttpEntityStore)

    def test_fixture_store_by_default(self, catalog_path: Path) -> None:
        from src.main import _build_store
        from src.providers.store.memory_store import InMemoryEntityStore

        store = _build_store(_settings(catalog_fixture_path=str(catalog_path)), httpx.AsyncClient())
        assert isinstance(store, InMemoryEntityStore)
        assert len(store) > 0


class TestBuildPluginSource:
    def test_http_source_when_url_set(self) -> None:
        from src.main import _build_plugin_source
        from src.providers.plugins.http_plugin_source import HttpPluginSource

        source = _build_plugin_source(_settings(plugin_source_url="https://plugins.example"), httpx.AsyncClient())
        assert isinstance(source, HttpPluginSource)

    def test_static_source_by_default(self) -> None:
        from src.main import _build_plugin_source
        from src.providers.plugins.http_plugin_source import StaticPluginSource

        assert isinstance(_build_plugin_source(_settings(), httpx.AsyncClient()), StaticPluginSource)


# ======================================================================
# _build_all
# ======================================================================


class TestBuildAll:
    @pytest.mark.asyncio
    async def test_components(self, catalog_path: Path) -> None:
        from src.main import _build_all
        from src.services.catalog_search_service import CatalogSearchService

        components = _build_all(_settings(catalog_fixture_path=str(catalog_path)))
        try:
            assert isinstance(components["search_service"], CatalogSearchService)
            assert components["provider_names"] == {
                "entity_store": "memory",
                "plugin_source": "static_plugin_source",
            }
            assert not components["cache_sync"].running
        finally:
            await components["http_client"].aclose()


# ======================================================================
# create_app
# ======================================================================


class TestCreateApp:
    def test_routes_registered(self) -> None:
        from src.main import create_app

        app = create_app()
        assert isinstance(app, FastAPI)
        paths = {route.path for route in app.routes}
        assert {
            "/api/v1/resources/search",
            "/api/v1/facilities/search",
            "/api/v1/organisations",
            "/api/v1/health",
        } <= paths

    def test_lifespan_serves_fixture_catalogue(
        self, catalog_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import src.main as main_module

        monkeypatch.setattr(
            main_module, "settings", _settings(catalog_fixture_path=str(catalog_path))
        )
        with TestClient(main_module.create_app()) as client:
            health = client.get("/api/v1/health").json()
            # the startup sync already published the first plugin snapshot
            assert health["plugin_snapshot_version"] == 1
            assert health["cache_sync_errors"] == 0

            resp = client.get("/api/v1/resources/search", params={"keywords": "gnss"})
            assert resp.status_code == 200
            assert sorted(i["id"] for i in resp.json()["items"]) == ["dist-2", "dist-3"]
            assert client.app.state.cache_sync.running
