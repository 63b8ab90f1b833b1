"""Unit tests for the result and facet models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.interfaces.user_directory import DirectoryUser
from src.models.discovery import (
    AvailableFormat,
    AvailableFormatType,
    DiscoveryItem,
    Plugin,
    ProviderGroup,
    SearchResponse,
)
from src.providers.users.static_directory import StaticUserDirectory


def _item(**overrides) -> DiscoveryItem:
    values = {"id": "d", "href": "h", "href_extended": "h?extended=true"}
    values.update(overrides)
    return DiscoveryItem(**values)


class TestDiscoveryItem:
    def test_serialises_by_alias(self) -> None:
        item = _item(
            meta_id="m",
            data_provider=("Alpha",),
            available_formats=(
                AvailableFormat(original_format="text/csv", format="text/csv", href="x", label="CSV"),
            ),
        )
        dumped = item.model_dump(by_alias=True, mode="json", exclude_none=True)
        assert dumped["hrefExtended"] == "h?extended=true"
        assert dumped["metaId"] == "m"
        assert dumped["dataProvider"] == ["Alpha"]
        assert dumped["availableFormats"][0]["originalFormat"] == "text/csv"
        assert dumped["availableFormats"][0]["type"] == "ORIGINAL"
        assert "editorId" not in dumped

    def test_accepts_aliases_as_input(self) -> None:
        item = DiscoveryItem.model_validate({"id": "d", "href": "h", "hrefExtended": "e"})
        assert item.href_extended == "e"

    def test_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _item().id = "other"  # type: ignore[misc]


class TestSearchResponse:
    def test_defaults(self) -> None:
        response = SearchResponse()
        assert response.total == 0
        assert response.facet_tree is None
        assert response.facets.keywords == ()


class TestSmallModels:
    def test_provider_group_expansion(self) -> None:
        group = ProviderGroup(organization_id="o", group_id="g", sibling_ids=("s",))
        assert group.expansion() == {"o", "g", "s"}

    def test_plugin_requires_distribution(self) -> None:
        with pytest.raises(ValidationError):
            Plugin.model_validate({"relations": []})

    def test_converted_type_value(self) -> None:
        assert AvailableFormatType("CONVERTED") is AvailableFormatType.CONVERTED


class TestStaticUserDirectory:
    @pytest.mark.asyncio
    async def test_lists_copies(self) -> None:
        directory = StaticUserDirectory([DirectoryUser("u", "Ada", "Lovelace")])
        users = await directory.list_users()
        users.clear()
        assert [u.full_name for u in await directory.list_users()] == ["Ada Lovelace"]

    def test_full_name_without_parts(self) -> None:
        assert DirectoryUser("u").full_name == ""
