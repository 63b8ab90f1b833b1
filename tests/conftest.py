"""Shared pytest fixtures for the catalog search test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio

from src.interfaces.user_directory import DirectoryUser
from src.models.catalog import EntityType, Record
from src.models.snapshot import Snapshot
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.organizations.group_directory import OrganizationGroupDirectory
from src.providers.plugins.http_plugin_source import StaticPluginSource
from src.providers.store.memory_store import InMemoryEntityStore
from src.providers.taxonomy.store_taxonomy import StoreCategoryTaxonomy
from src.providers.users.static_directory import StaticUserDirectory
from src.services.available_formats import AvailableFormatsGenerator
from src.services.catalog_search_service import CatalogSearchService
from src.services.plugin_registry import PluginRegistry
from src.services.prefetch_cache import PrefetchCache
from src.services.result_assembler import ResultAssembler
from src.services.search_profiles import DATA_PRODUCT_SCHEMA

API_HOST = "https://catalog.example"

# ---------------------------------------------------------------------------
# Fixture catalogue
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def catalog_path(project_root: Path) -> Path:
    """Path of the JSON fixture catalogue used across the suite."""
    return project_root / "tests" / "fixtures" / "catalog.json"


@pytest.fixture
def catalog_payload(catalog_path: Path) -> dict[str, list[dict[str, Any]]]:
    with open(catalog_path, encoding="utf-8") as handle:
        return json.load(handle)


@pytest.fixture
def memory_store(catalog_payload: dict[str, list[dict[str, Any]]]) -> InMemoryEntityStore:
    """A fresh in-memory store (with zeroed call counters) per test."""
    return InMemoryEntityStore.from_catalog(catalog_payload)


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory: ``make_record(EntityType.X, "id", title="...", ...)``."""

    def _make(entity_type: EntityType, instance_id: str, **payload: Any) -> Record:
        return Record.from_payload(entity_type, {"instanceId": instance_id, **payload})

    return _make


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def group_directory(memory_store: InMemoryEntityStore) -> OrganizationGroupDirectory:
    directory = OrganizationGroupDirectory(memory_store)
    await directory.refresh()
    return directory


@pytest.fixture
def taxonomy(memory_store: InMemoryEntityStore) -> StoreCategoryTaxonomy:
    return StoreCategoryTaxonomy(memory_store, MemoryCacheProvider())


@pytest.fixture
def plugin_registry() -> PluginRegistry:
    return PluginRegistry(StaticPluginSource())


@pytest.fixture
def user_directory() -> StaticUserDirectory:
    return StaticUserDirectory(
        [
            DirectoryUser(auth_identifier="user-1", first_name="Ada", last_name="Lovelace"),
            DirectoryUser(auth_identifier="admin-1", first_name="Root", last_name="Admin", is_admin=True),
        ]
    )


@pytest.fixture
def assembler(group_directory: OrganizationGroupDirectory) -> ResultAssembler:
    return ResultAssembler(AvailableFormatsGenerator(API_HOST), group_directory, API_HOST)


@pytest.fixture
def search_service(
    memory_store: InMemoryEntityStore,
    group_directory: OrganizationGroupDirectory,
    taxonomy: StoreCategoryTaxonomy,
    plugin_registry: PluginRegistry,
    assembler: ResultAssembler,
    user_directory: StaticUserDirectory,
) -> CatalogSearchService:
    return CatalogSearchService(
        store=memory_store,
        groups=group_directory,
        taxonomy=taxonomy,
        plugins=plugin_registry,
        assembler=assembler,
        users=user_directory,
    )


# ---------------------------------------------------------------------------
# Prefetched data-product snapshot
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def product_roots(memory_store: InMemoryEntityStore) -> list[Record]:
    """Published data products of the fixture catalogue."""
    products = await memory_store.retrieve_all(EntityType.DATA_PRODUCT)
    return [p for p in products if p.status.value == "PUBLISHED"]


@pytest_asyncio.fixture
async def product_snapshot(
    memory_store: InMemoryEntityStore, product_roots: list[Record]
) -> Snapshot:
    result = await PrefetchCache(memory_store, DATA_PRODUCT_SCHEMA).prefetch(product_roots)
    return result.snapshot
