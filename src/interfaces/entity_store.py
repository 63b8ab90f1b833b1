"""Abstract base class for catalog entity stores.

The entity store is the only component that performs I/O against the
catalog.  The search core talks to it exclusively through the batch
operations below; after a request's snapshot is frozen it is never called
again for that request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from src.models.catalog import EntityType, Record


class IEntityStore(ABC):
    """Contract for point, batch and full-scan access to catalog records."""

    @abstractmethod
    async def retrieve(self, entity_type: EntityType, instance_id: str) -> Record:
        """Fetch a single record.

        Parameters
        ----------
        entity_type:
            Type of the requested record.
        instance_id:
            Instance id, unique within *entity_type*.

        Raises
        ------
        src.utils.errors.NotFoundError
            If no record with that id exists.
        src.utils.errors.UpstreamUnavailableError
            If the store could not be reached.
        """

    @abstractmethod
    async def retrieve_bunch(
        self, entity_type: EntityType, instance_ids: Iterable[str]
    ) -> list[Record]:
        """Fetch many records of one type in a single round trip.

        Ids that do not exist are silently missing from the result; this is
        never an error.

        Raises
        ------
        src.utils.errors.UpstreamUnavailableError
            If the store could not be reached.
        """

    @abstractmethod
    async def retrieve_all(self, entity_type: EntityType) -> list[Record]:
        """Fetch every record of *entity_type*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this store backend."""
