"""Output view models: discovery items, formats, providers and responses.

These are the shapes a search produces.  They are derived entirely from a
request snapshot by the result assembler and the facet aggregator, and are
serialised as-is by the API layer (``model_dump(by_alias=True)``), so the
aliases below are the wire names.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.facets import FacetNode, Facets


class AvailableFormatType(str, Enum):  # noqa: UP042
    ORIGINAL = "ORIGINAL"
    CONVERTED = "CONVERTED"


class AvailableFormat(BaseModel):
    """One way of retrieving a distribution's data.

    Converted formats (produced by a conversion plugin) also carry the
    plugin id and the input format the plugin consumes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_format: str = Field(alias="originalFormat")
    format: str
    href: str
    label: str
    type: AvailableFormatType = AvailableFormatType.ORIGINAL
    input_format: str | None = Field(default=None, alias="inputFormat")
    plugin_id: str | None = Field(default=None, alias="pluginId")


class PluginRelation(BaseModel):
    """A conversion a plugin offers for one distribution."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    plugin_id: str = Field(alias="pluginId")
    input_format: str = Field(alias="inputFormat")
    output_format: str = Field(alias="outputFormat")


class Plugin(BaseModel):
    """Plugin descriptor as published by the conversion service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    distribution_id: str = Field(alias="distributionId")
    relations: tuple[PluginRelation, ...] = ()


class ProviderGroup(BaseModel):
    """Result of expanding one organisation through its provider group."""

    model_config = ConfigDict(frozen=True)

    organization_id: str
    group_id: str
    sibling_ids: tuple[str, ...] = ()

    def expansion(self) -> set[str]:
        """The organisation, its group and all its siblings."""
        return {self.organization_id, self.group_id, *self.sibling_ids}


class DataServiceProvider(BaseModel):
    """Summary of the organisation that provides a distribution's service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    instance_id: str = Field(alias="instanceid")
    legal_name: str | None = Field(default=None, alias="dataProviderLegalName")
    url: str | None = Field(default=None, alias="dataProviderUrl")
    country: str | None = None
    related_ids: tuple[str, ...] = Field(default=(), alias="relatedDataProvider")


class DiscoveryItem(BaseModel):
    """Search-result projection of one distribution (or facility)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    href: str
    href_extended: str = Field(alias="hrefExtended")
    uid: str | None = None
    meta_id: str | None = Field(default=None, alias="metaId")
    title: str | None = None
    description: str | None = None
    sha256id: str = ""
    available_formats: tuple[AvailableFormat, ...] = Field(default=(), alias="availableFormats")
    data_provider: tuple[str, ...] = Field(default=(), alias="dataProvider")
    service_provider: tuple[str, ...] = Field(default=(), alias="serviceProvider")
    data_service_provider: DataServiceProvider | None = Field(
        default=None, alias="dataServiceProvider"
    )
    categories: tuple[str, ...] | None = None

    # Backoffice-only fields
    editor_id: str | None = Field(default=None, alias="editorId")
    editor_full_name: str | None = Field(default=None, alias="editorFullName")
    change_date: str | None = Field(default=None, alias="changeDate")
    versioning_status: str | None = Field(default=None, alias="versioningStatus")


class OrganizationItem(BaseModel):
    """Search-result projection of one organisation."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    logo: str | None = None
    url: str | None = None
    country: str | None = None


class SearchResponse(BaseModel):
    """Complete answer of a search: items plus facets.

    ``facet_tree`` is set only in facet mode and holds the grouping the
    caller selected with ``facetstype``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    items: tuple[DiscoveryItem, ...] = ()
    organisations: tuple[OrganizationItem, ...] = ()
    facets: Facets = Field(default_factory=Facets)
    facet_tree: FacetNode | None = Field(default=None, alias="facetTree")
    total: int = 0
