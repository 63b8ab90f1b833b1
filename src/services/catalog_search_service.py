"""Catalog search orchestration.

One request runs through these phases, each timed and logged:

    1. criteria    flat parameters -> FilterCriteria
    2. retrieval   root records of the profile's type (retrieve_all, or a
                   single retrieve for an organisation ``id`` lookup)
    3. visibility  drop record versions the caller may not see
    4. prefetch    batched multi-hop resolution into a frozen snapshot
    5. filtering   the profile's stages over the snapshot
    6. assembly    view models for the surviving records
    7. facets      keyword / organisation / category facets

Only a root-retrieval failure or a prefetch in which every batch call
failed aborts the request (:class:`StoreUnavailableError`).  Taxonomy,
user-directory and category-index failures degrade the response and are
logged.

Architecture:
    - Called by the API routes and by the CLI.
    - Depends only on interfaces plus the process-wide plugin registry,
      so tests can inject in-memory collaborators.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Mapping

from src.interfaces.category_taxonomy import ICategoryTaxonomy
from src.interfaces.entity_store import IEntityStore
from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.interfaces.user_directory import IUserDirectory
from src.models.catalog import EntityType, Record, RecordStatus
from src.models.criteria import FilterCriteria, RequestUser
from src.models.discovery import DiscoveryItem, OrganizationItem, SearchResponse
from src.models.facets import FacetNode, Facets
from src.services.facet_aggregator import FacetAggregator
from src.services.filter_pipeline import FilterExecutionConfig, FilterPipeline
from src.services.filter_stages import StageContext
from src.services.plugin_registry import PluginRegistry
from src.services.prefetch_cache import PrefetchCache
from src.services.result_assembler import BackofficeView, ResultAssembler, index_users
from src.services.search_profiles import ProfileKind, SearchProfile, default_profiles
from src.utils.errors import CatalogSearchError, NotFoundError, StoreUnavailableError
from src.utils.logging import get_logger

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def is_visible(record: Record, criteria: FilterCriteria, user: RequestUser | None) -> bool:
    """Whether *user* may see this version of *record*.

    Anonymous callers, and callers that did not ask for specific statuses,
    only see published records.  A privileged caller asking for statuses
    sees records in those statuses that are published, or that they edit,
    or any of them when they are an admin.
    """
    if user is None or not criteria.versioning_status:
        return record.status is RecordStatus.PUBLISHED
    if record.status not in criteria.versioning_status:
        return False
    return (
        record.status is RecordStatus.PUBLISHED
        or user.is_admin
        or record.editor_id == user.auth_identifier
    )


class CatalogSearchService:
    """Runs searches for every configured :class:`SearchProfile`."""

    def __init__(
        self,
        store: IEntityStore,
        groups: IProviderGroupResolver,
        taxonomy: ICategoryTaxonomy,
        plugins: PluginRegistry,
        assembler: ResultAssembler,
        users: IUserDirectory | None = None,
        profiles: Mapping[ProfileKind, SearchProfile] | None = None,
        execution: FilterExecutionConfig | None = None,
        max_hops: int | None = None,
        store_semaphore: asyncio.Semaphore | None = None,
    ) -> None:
        self._store = store
        self._groups = groups
        self._taxonomy = taxonomy
        self._plugins = plugins
        self._assembler = assembler
        self._aggregator = FacetAggregator(groups)
        self._users = users
        self._profiles = dict(profiles or default_profiles())
        self._execution = execution or FilterExecutionConfig()
        self._max_hops = max_hops
        self._semaphore = store_semaphore

    def profile(self, kind: ProfileKind | str) -> SearchProfile:
        return self._profiles[ProfileKind(kind)]

    async def search(
        self,
        kind: ProfileKind | str,
        params: Mapping[str, Any],
        user: RequestUser | None = None,
    ) -> SearchResponse:
        """Run one search.

        Parameters
        ----------
        kind:
            Which profile to search (``dataproducts``, ``facilities``,
            ``organisations``).
        params:
            Flat query parameters, validated here into
            :class:`FilterCriteria`.
        user:
            The authenticated caller, if any.

        Raises
        ------
        StoreUnavailableError
            If the store could not serve the request at all.
        """
        started = time.perf_counter()
        profile = self.profile(kind)
        criteria = FilterCriteria.from_params(params)

        phase = time.perf_counter()
        roots = await self._retrieve_roots(profile, criteria)
        retrieved = len(roots)
        roots = [r for r in roots if is_visible(r, criteria, user)]
        logger.info(
            "roots_retrieved",
            profile=profile.kind.value,
            retrieved=retrieved,
            visible=len(roots),
            duration_ms=_elapsed_ms(phase),
        )

        prefetched = await PrefetchCache(
            self._store, profile.schema, self._max_hops, self._semaphore
        ).prefetch(roots)
        snapshot = prefetched.snapshot

        phase = time.perf_counter()
        if criteria.record_id is not None and profile.kind is ProfileKind.ORGANISATIONS:
            filtered = roots
        else:
            context = StageContext(
                criteria=criteria,
                snapshot=snapshot,
                groups=self._groups,
                category_index=await self._category_index(profile),
            )
            filtered = await FilterPipeline(profile.stages, self._execution).run(roots, context)
        logger.info(
            "filtering_complete",
            profile=profile.kind.value,
            before=len(roots),
            after=len(filtered),
            duration_ms=_elapsed_ms(phase),
        )

        phase = time.perf_counter()
        backoffice = await self._backoffice(criteria, user)
        items: list[DiscoveryItem] = []
        organisations: list[OrganizationItem] = []
        if profile.kind is ProfileKind.DATA_PRODUCTS:
            items = self._assembler.data_product_items(
                filtered, snapshot, self._plugins.current(), backoffice
            )
        elif profile.kind is ProfileKind.FACILITIES:
            items = self._assembler.facility_items(filtered, snapshot, backoffice)
        else:
            organisations = self._assembler.organization_items(filtered, snapshot)
        logger.info("assembly_complete", items=len(items) + len(organisations), duration_ms=_elapsed_ms(phase))

        phase = time.perf_counter()
        facets = Facets()
        facet_tree: FacetNode | None = None
        if profile.kind is not ProfileKind.ORGANISATIONS:
            facets = self._aggregator.aggregate(
                profile.facets, filtered, items, snapshot, await self._taxonomy_tree()
            )
            if criteria.facets and criteria.facets_type is not None:
                facet_tree = self._aggregator.facet_tree(criteria.facets_type, facets, items)
        logger.info("facets_complete", duration_ms=_elapsed_ms(phase))

        logger.info(
            "search_complete",
            profile=profile.kind.value,
            results=len(items) or len(organisations),
            round_trips=prefetched.stats.total_round_trips,
            duration_ms=_elapsed_ms(started),
        )
        return SearchResponse(
            items=tuple(items),
            organisations=tuple(organisations),
            facets=facets,
            facet_tree=facet_tree,
            total=len(items) or len(organisations),
        )

    # ------------------------------------------------------------------
    # Collaborator calls
    # ------------------------------------------------------------------

    async def _retrieve_roots(
        self, profile: SearchProfile, criteria: FilterCriteria
    ) -> list[Record]:
        try:
            if criteria.record_id is not None and profile.kind is ProfileKind.ORGANISATIONS:
                try:
                    return [await self._store.retrieve(profile.root_type, criteria.record_id)]
                except NotFoundError:
                    logger.info("record_not_found", record_id=criteria.record_id)
                    return []
            if self._semaphore is None:
                return await self._store.retrieve_all(profile.root_type)
            async with self._semaphore:
                return await self._store.retrieve_all(profile.root_type)
        except CatalogSearchError as exc:
            logger.error("root_retrieval_failed", profile=profile.kind.value, error=str(exc))
            raise StoreUnavailableError(
                f"Could not retrieve {profile.root_type.value} records: {exc.message}"
            ) from exc

    async def _category_index(self, profile: SearchProfile) -> dict[str, str]:
        if not profile.needs_category_index:
            return {}
        try:
            categories = await self._store.retrieve_all(EntityType.CATEGORY)
        except CatalogSearchError as exc:
            logger.warning("category_index_unavailable", error=str(exc))
            return {}
        return {c.uid: c.instance_id for c in categories if c.uid}

    async def _taxonomy_tree(self) -> FacetNode | None:
        try:
            return await self._taxonomy.tree()
        except CatalogSearchError as exc:
            logger.warning("category_taxonomy_unavailable", error=str(exc))
            return None

    async def _backoffice(
        self, criteria: FilterCriteria, user: RequestUser | None
    ) -> BackofficeView | None:
        if user is None or not criteria.versioning_status:
            return None
        if self._users is None:
            return BackofficeView()
        try:
            users = await self._users.list_users()
        except CatalogSearchError as exc:
            logger.warning("user_directory_unavailable", error=str(exc))
            return BackofficeView()
        return BackofficeView(users=index_users(users))
