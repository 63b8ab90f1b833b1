"""Unit tests for the HTTP entity store and plugin source.

Both adapters take an injected ``httpx.AsyncClient``; here it runs on an
``httpx.MockTransport`` so no network is touched.
"""

from __future__ import annotations

import json

import httpx
import pytest

from src.models.catalog import EntityType
from src.providers.plugins.http_plugin_source import HttpPluginSource
from src.providers.store.http_store import HttpEntityStore
from src.utils.errors import NotFoundError, UpstreamUnavailableError

E = EntityType
BASE = "https://store.example/api"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpEntityStore:
    @pytest.mark.asyncio
    async def test_retrieve_parses_record(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/dataproduct/dp-1"
            return httpx.Response(200, json={"instanceId": "dp-1", "title": "Waves"})

        async with _client(handler) as client:
            record = await HttpEntityStore(client, BASE + "/").retrieve(E.DATA_PRODUCT, "dp-1")
        assert record.instance_id == "dp-1"
        assert record.texts("title") == ["Waves"]

    @pytest.mark.asyncio
    async def test_retrieve_404_is_not_found(self) -> None:
        async with _client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(NotFoundError):
                await HttpEntityStore(client, BASE).retrieve(E.DATA_PRODUCT, "missing")

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_unavailable(self) -> None:
        async with _client(lambda r: httpx.Response(500)) as client:
            store = HttpEntityStore(client, BASE)
            with pytest.raises(UpstreamUnavailableError):
                await store.retrieve(E.DATA_PRODUCT, "dp-1")
            with pytest.raises(UpstreamUnavailableError):
                await store.retrieve_all(E.CATEGORY)

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(UpstreamUnavailableError):
                await HttpEntityStore(client, BASE).retrieve_bunch(E.LOCATION, ["loc-1"])

    @pytest.mark.asyncio
    async def test_batch_posts_sorted_unique_ids(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == "/api/distribution/batch"
            body = json.loads(request.content)
            seen.append(body)
            return httpx.Response(200, json=[{"instanceId": i} for i in body["ids"]])

        async with _client(handler) as client:
            records = await HttpEntityStore(client, BASE).retrieve_bunch(
                E.DISTRIBUTION, ["d-2", "d-1", "d-2"]
            )
        assert seen == [{"ids": ["d-1", "d-2"]}]
        assert [r.instance_id for r in records] == ["d-1", "d-2"]

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_call(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as client:
            assert await HttpEntityStore(client, BASE).retrieve_bunch(E.LOCATION, []) == []

    @pytest.mark.asyncio
    async def test_non_array_body_is_rejected(self) -> None:
        async with _client(lambda r: httpx.Response(200, json={"oops": 1})) as client:
            with pytest.raises(UpstreamUnavailableError):
                await HttpEntityStore(client, BASE).retrieve_all(E.ORGANIZATION)


class TestHttpPluginSource:
    @pytest.mark.asyncio
    async def test_invalid_descriptors_are_skipped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["plugins"] == "all"
            return httpx.Response(
                200,
                json=[
                    {
                        "distributionId": "dist-1",
                        "relations": [
                            {"pluginId": "p1", "inputFormat": "a", "outputFormat": "b"}
                        ],
                    },
                    {"relations": []},
                ],
            )

        async with _client(handler) as client:
            plugins = await HttpPluginSource(client, "https://plugins.example").fetch_plugins()
        assert [p.distribution_id for p in plugins] == ["dist-1"]
        assert plugins[0].relations[0].plugin_id == "p1"

    @pytest.mark.asyncio
    async def test_failure_raises_upstream_unavailable(self) -> None:
        async with _client(lambda r: httpx.Response(503)) as client:
            with pytest.raises(UpstreamUnavailableError):
                await HttpPluginSource(client, "https://plugins.example").fetch_plugins()
