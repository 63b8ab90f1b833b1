"""Entity store adapter for the catalogue's HTTP metadata API.

Endpoints used (relative to ``base_url``)::

    GET  /{type}/{instanceId}   single record, 404 when absent
    POST /{type}/batch          body {"ids": [...]}, returns a JSON array
    GET  /{type}                every record of the type

Any transport error or non-2xx status other than a single-record 404 is
raised as :class:`UpstreamUnavailableError`; callers decide whether that
is per-type degradation or a request-level failure.
"""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from src.interfaces.entity_store import IEntityStore
from src.models.catalog import EntityType, Record
from src.utils.errors import NotFoundError, UpstreamUnavailableError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class HttpEntityStore(IEntityStore):
    """:class:`IEntityStore` over an injected ``httpx.AsyncClient``.

    Parameters
    ----------
    http_client:
        Shared client; connection pooling and timeouts are configured by
        whoever builds it.
    base_url:
        Root URL of the metadata API, without a trailing slash.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    def _url(self, entity_type: EntityType, *parts: str) -> str:
        return "/".join([self._base_url, entity_type.value.lower(), *parts])

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("entity_store_request_failed", url=url, error=str(exc))
            raise UpstreamUnavailableError(
                f"Request to {url} failed: {exc}", provider_name=self.get_provider_name()
            ) from exc
        return response

    def _check(self, response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "entity_store_bad_status",
                url=str(response.request.url),
                status=response.status_code,
            )
            raise UpstreamUnavailableError(
                f"Entity store answered {response.status_code}",
                provider_name=self.get_provider_name(),
            ) from exc
        return response.json()

    def _records(self, entity_type: EntityType, payloads: Any) -> list[Record]:
        if not isinstance(payloads, list):
            raise UpstreamUnavailableError(
                "Expected a JSON array from the entity store",
                provider_name=self.get_provider_name(),
            )
        return [Record.from_payload(entity_type, p) for p in payloads if p]

    # ------------------------------------------------------------------
    # IEntityStore implementation
    # ------------------------------------------------------------------

    async def retrieve(self, entity_type: EntityType, instance_id: str) -> Record:
        response = await self._request("GET", self._url(entity_type, instance_id))
        if response.status_code == 404:
            raise NotFoundError(
                f"{entity_type.value} {instance_id} not found",
                provider_name=self.get_provider_name(),
            )
        return Record.from_payload(entity_type, self._check(response))

    async def retrieve_bunch(
        self, entity_type: EntityType, instance_ids: Iterable[str]
    ) -> list[Record]:
        ids = sorted(set(instance_ids))
        if not ids:
            return []
        response = await self._request(
            "POST", self._url(entity_type, "batch"), json={"ids": ids}
        )
        return self._records(entity_type, self._check(response))

    async def retrieve_all(self, entity_type: EntityType) -> list[Record]:
        response = await self._request("GET", self._url(entity_type))
        return self._records(entity_type, self._check(response))

    def get_provider_name(self) -> str:
        return "http_entity_store"
