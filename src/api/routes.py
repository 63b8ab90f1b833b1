"""FastAPI routes for catalog search.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                      Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/resources/search      GET     Data product search (one item per distribution)
# /api/v1/facilities/search     GET     Facility search
# /api/v1/organisations         GET     Organisation search / lookup by ``id``
# /api/v1/health                GET     Health check + provider status
#
# A gateway in front of the service may forward the authenticated caller as
# X-User-Id (and X-User-Admin: true); requests without it are anonymous.
#
# Query parameters are passed through untouched as a flat map; the search
# service validates them once into FilterCriteria.  Services are read from
# app.state (populated at startup in main.py's _build_all).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request

from src.api.schemas import HealthResponse
from src.models.criteria import RequestUser
from src.services.cache_sync import CacheSyncJob
from src.services.catalog_search_service import CatalogSearchService
from src.services.plugin_registry import PluginRegistry
from src.services.search_profiles import ProfileKind

logger: structlog.BoundLogger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api/v1", tags=["catalog"])

_VERSION = "0.1.0"
_USER_HEADER = "x-user-id"
_ADMIN_HEADER = "x-user-admin"


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_search_service(request: Request) -> CatalogSearchService:
    """Return the search service from application state."""
    return request.app.state.search_service


def _get_plugin_registry(request: Request) -> PluginRegistry:
    return request.app.state.plugin_registry


def _get_cache_sync(request: Request) -> CacheSyncJob | None:
    return getattr(request.app.state, "cache_sync", None)


def _get_request_user(request: Request) -> RequestUser | None:
    """The caller forwarded by the gateway, or ``None`` when anonymous."""
    auth_identifier = request.headers.get(_USER_HEADER, "").strip()
    if not auth_identifier:
        return None
    is_admin = request.headers.get(_ADMIN_HEADER, "").strip().lower() in ("true", "1", "yes")
    return RequestUser(auth_identifier=auth_identifier, is_admin=is_admin)


SearchDep = Annotated[CatalogSearchService, Depends(_get_search_service)]
RegistryDep = Annotated[PluginRegistry, Depends(_get_plugin_registry)]
CacheSyncDep = Annotated[CacheSyncJob | None, Depends(_get_cache_sync)]
UserDep = Annotated[RequestUser | None, Depends(_get_request_user)]


def _query_params(request: Request) -> dict[str, str]:
    return dict(request.query_params)


async def _search(
    service: CatalogSearchService, kind: ProfileKind, request: Request, user: RequestUser | None
) -> dict[str, Any]:
    response = await service.search(kind, _query_params(request), user=user)
    return response.model_dump(by_alias=True, mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Search endpoints
# ---------------------------------------------------------------------------


@router.get("/resources/search")
async def search_resources(request: Request, service: SearchDep, user: UserDep) -> dict[str, Any]:
    """Search data products; one result item per distribution."""
    return await _search(service, ProfileKind.DATA_PRODUCTS, request, user)


@router.get("/facilities/search")
async def search_facilities(request: Request, service: SearchDep, user: UserDep) -> dict[str, Any]:
    return await _search(service, ProfileKind.FACILITIES, request, user)


@router.get("/organisations")
async def search_organisations(request: Request, service: SearchDep, user: UserDep) -> dict[str, Any]:
    """Search organisations, or look one up with ``?id=``."""
    return await _search(service, ProfileKind.ORGANISATIONS, request, user)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, registry: RegistryDep, cache_sync: CacheSyncDep) -> HealthResponse:
    """Report liveness plus the provider wiring chosen at startup."""
    providers: dict[str, Any] = getattr(request.app.state, "provider_names", {})
    return HealthResponse(
        status="healthy",
        version=_VERSION,
        providers=providers,
        plugin_snapshot_version=registry.current().version,
        cache_sync_errors=cache_sync.errors if cache_sync is not None else 0,
    )
