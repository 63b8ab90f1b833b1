"""Plugin catalogue adapters.

The conversion service answers ``GET {url}?plugins=all`` with a JSON array
of ``{"distributionId": ..., "relations": [{"pluginId", "inputFormat",
"outputFormat"}, ...]}`` objects.
"""

from __future__ import annotations

from typing import Iterable

import httpx
from pydantic import ValidationError

from src.interfaces.plugin_source import IPluginSource
from src.models.discovery import Plugin
from src.utils.errors import UpstreamUnavailableError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class HttpPluginSource(IPluginSource):
    """Reads plugin descriptors from the conversion service over HTTP."""

    def __init__(self, http_client: httpx.AsyncClient, url: str) -> None:
        self._http = http_client
        self._url = url

    async def fetch_plugins(self) -> list[Plugin]:
        try:
            response = await self._http.get(self._url, params={"plugins": "all"})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("plugin_fetch_failed", url=self._url, error=str(exc))
            raise UpstreamUnavailableError(
                f"Plugin service unavailable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        plugins: list[Plugin] = []
        for entry in payload or []:
            try:
                plugins.append(Plugin.model_validate(entry))
            except ValidationError as exc:
                logger.warning("plugin_descriptor_invalid", error=str(exc))
        return plugins

    def get_provider_name(self) -> str:
        return "http_plugin_source"


class StaticPluginSource(IPluginSource):
    """Fixed plugin list, for the CLI and for deployments without converters."""

    def __init__(self, plugins: Iterable[Plugin] = ()) -> None:
        self._plugins = list(plugins)

    async def fetch_plugins(self) -> list[Plugin]:
        return list(self._plugins)

    def get_provider_name(self) -> str:
        return "static_plugin_source"
