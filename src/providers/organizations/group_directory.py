"""Organisation group directory.

A process-wide lookup table rebuilt from ``retrieve_all(ORGANIZATION)``:

    - group of an organisation  — its first ``memberOf`` parent, or itself
    - siblings                  — the other members of that group
    - owners                    — organisations whose ``owns`` relation
                                  points at a given instance id
    - labels                    — legal names, for facet display

Readers only ever see a complete table: ``refresh`` builds a new
:class:`_Tables` object and replaces the reference in one assignment.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from src.interfaces.entity_store import IEntityStore
from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.models.catalog import EntityType, Record
from src.models.discovery import ProviderGroup
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Tables:
    group_of: dict[str, str] = field(default_factory=dict)
    members: dict[str, tuple[str, ...]] = field(default_factory=dict)
    owners: dict[str, frozenset[str]] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)


def organization_label(record: Record) -> str | None:
    names = record.texts("legalName")
    return ",".join(names) if names else None


def build_tables(organizations: list[Record]) -> _Tables:
    group_of: dict[str, str] = {}
    members: dict[str, list[str]] = defaultdict(list)
    owners: dict[str, set[str]] = defaultdict(set)
    labels: dict[str, str] = {}

    for org in organizations:
        parents = org.references("memberOf")
        group = parents[0].target_id if parents else org.instance_id
        group_of[org.instance_id] = group
        if group != org.instance_id:
            members[group].append(org.instance_id)
        for owned in org.references("owns"):
            owners[owned.target_id].add(org.instance_id)
        label = organization_label(org)
        if label:
            labels[org.instance_id] = label

    return _Tables(
        group_of=group_of,
        members={g: tuple(sorted(set(m))) for g, m in members.items()},
        owners={k: frozenset(v) for k, v in owners.items()},
        labels=labels,
    )


class OrganizationGroupDirectory(IProviderGroupResolver):
    """:class:`IProviderGroupResolver` backed by a refreshed in-memory table.

    Until the first ``refresh`` every organisation is its own group.
    """

    def __init__(self, store: IEntityStore) -> None:
        self._store = store
        self._tables = _Tables()

    async def refresh(self) -> None:
        organizations = await self._store.retrieve_all(EntityType.ORGANIZATION)
        self._tables = build_tables(organizations)
        logger.info(
            "organization_directory_refreshed",
            organizations=len(organizations),
            groups=len(self._tables.members),
        )

    def expand(self, organization_id: str) -> ProviderGroup:
        tables = self._tables
        group = tables.group_of.get(organization_id, organization_id)
        siblings = tuple(
            m for m in tables.members.get(group, ()) if m != organization_id
        )
        return ProviderGroup(
            organization_id=organization_id, group_id=group, sibling_ids=siblings
        )

    def owners_of(self, instance_id: str) -> set[str]:
        return set(self._tables.owners.get(instance_id, ()))

    def label(self, organization_id: str) -> str | None:
        return self._tables.labels.get(organization_id)
