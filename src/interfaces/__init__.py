"""Public interface definitions for the search core's external collaborators.

The core never talks to a concrete backend directly.  Adapters in
``src/providers/`` implement these contracts and are wired together in
``src/main.py`` (or the CLI), so tests can inject fakes freely.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEntityStore               →  InMemoryEntityStore, HttpEntityStore
    ICategoryTaxonomy          →  StoreCategoryTaxonomy
    IProviderGroupResolver     →  OrganizationGroupDirectory
    IPluginSource              →  HttpPluginSource, StaticPluginSource
    IUserDirectory             →  StaticUserDirectory
    ICacheProvider             →  MemoryCacheProvider
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.category_taxonomy import ICategoryTaxonomy
from src.interfaces.entity_store import IEntityStore
from src.interfaces.plugin_source import IPluginSource
from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.interfaces.user_directory import DirectoryUser, IUserDirectory

__all__ = [
    "DirectoryUser",
    "ICacheProvider",
    "ICategoryTaxonomy",
    "IEntityStore",
    "IPluginSource",
    "IProviderGroupResolver",
    "IUserDirectory",
]
