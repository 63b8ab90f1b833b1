"""Abstract base class for the conversion-plugin catalogue."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.discovery import Plugin


class IPluginSource(ABC):
    """Contract for services that list installed conversion plugins."""

    @abstractmethod
    async def fetch_plugins(self) -> list[Plugin]:
        """Return every plugin descriptor currently installed.

        Raises
        ------
        src.utils.errors.UpstreamUnavailableError
            If the plugin service could not be reached.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this source."""
