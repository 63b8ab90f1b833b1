"""Unit tests for the organisation group directory."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.models.catalog import EntityType, Record
from src.providers.organizations.group_directory import OrganizationGroupDirectory, build_tables

E = EntityType


class TestExpansion:
    @pytest.mark.asyncio
    async def test_member_expands_to_group_and_siblings(self, group_directory) -> None:
        group = group_directory.expand("org-a")
        assert group.group_id == "org-parent"
        assert group.sibling_ids == ("org-b",)
        assert group.expansion() == {"org-a", "org-b", "org-parent"}

    @pytest.mark.asyncio
    async def test_group_parent_is_its_own_group(self, group_directory) -> None:
        group = group_directory.expand("org-parent")
        assert group.group_id == "org-parent"
        assert set(group.sibling_ids) == {"org-a", "org-b"}

    @pytest.mark.asyncio
    async def test_unknown_and_standalone(self, group_directory) -> None:
        assert group_directory.expand("org-c").expansion() == {"org-c"}
        assert group_directory.expand("nobody").expansion() == {"nobody"}

    @pytest.mark.asyncio
    async def test_owners_and_labels(self, group_directory) -> None:
        assert group_directory.owners_of("fac-1") == {"org-a"}
        assert group_directory.owners_of("dp-1") == set()
        assert group_directory.label("org-parent") == "EPOS ERIC"
        assert group_directory.label("org-noname") is None


class TestRefresh:
    @pytest.mark.asyncio
    async def test_empty_before_first_refresh(self, memory_store) -> None:
        directory = OrganizationGroupDirectory(memory_store)
        assert directory.expand("org-a").expansion() == {"org-a"}

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_tables(self, group_directory) -> None:
        group_directory._store = AsyncMock()
        group_directory._store.retrieve_all.side_effect = RuntimeError("down")
        with pytest.raises(RuntimeError):
            await group_directory.refresh()
        assert group_directory.expand("org-a").group_id == "org-parent"

    def test_first_member_of_wins(self) -> None:
        org = Record.from_payload(
            E.ORGANIZATION,
            {
                "instanceId": "x",
                "memberOf": [
                    {"entityType": "ORGANIZATION", "instanceId": "g1"},
                    {"entityType": "ORGANIZATION", "instanceId": "g2"},
                ],
            },
        )
        tables = build_tables([org])
        assert tables.group_of["x"] == "g1"
        assert tables.members == {"g1": ("x",)}
