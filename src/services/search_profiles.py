"""Search profiles: one declarative description per searchable entity kind.

A profile says which records are the roots, which relations the prefetch
follows, which filter stages run (in order) and where facets come from.
The search service is the same for every profile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.models.catalog import EntityType
from src.services.facet_aggregator import FacetSpec
from src.services.filter_stages import (
    BoundingBoxStage,
    CategoryNameStage,
    CountryStage,
    DateRangeStage,
    FacilityTypeStage,
    FilterStage,
    FullTextStage,
    KeywordStage,
    OrganisationStage,
    OwnerOrganisationStage,
    TextSource,
)
from src.services.reference_collector import RelationSchema

E = EntityType


class ProfileKind(str, Enum):  # noqa: UP042
    DATA_PRODUCTS = "dataproducts"
    FACILITIES = "facilities"
    ORGANISATIONS = "organisations"


@dataclass(frozen=True)
class SearchProfile:
    kind: ProfileKind
    root_type: EntityType
    schema: RelationSchema
    stages: tuple[FilterStage, ...]
    facets: FacetSpec = field(default_factory=FacetSpec)
    # whether the facility-type stage needs the category uid index
    needs_category_index: bool = False


_IDENTIFIER_TEXT = TextSource(path=("identifier",), fields=("identifier", "type"), identifier_pair=True)

# ---------------------------------------------------------------------------
# Data products
# ---------------------------------------------------------------------------

DATA_PRODUCT_SCHEMA = RelationSchema.of(
    (E.DATA_PRODUCT, "category", E.CATEGORY),
    (E.DATA_PRODUCT, "publisher", E.ORGANIZATION),
    (E.DATA_PRODUCT, "distribution", E.DISTRIBUTION),
    (E.DATA_PRODUCT, "identifier", E.IDENTIFIER),
    (E.DATA_PRODUCT, "spatialExtent", E.LOCATION),
    (E.DATA_PRODUCT, "temporalExtent", E.PERIOD_OF_TIME),
    (E.DISTRIBUTION, "accessService", E.WEBSERVICE),
    (E.DISTRIBUTION, "supportedOperation", E.OPERATION),
    (E.WEBSERVICE, "provider", E.ORGANIZATION),
    (E.WEBSERVICE, "category", E.CATEGORY),
    (E.WEBSERVICE, "spatialExtent", E.LOCATION),
    (E.OPERATION, "mapping", E.MAPPING),
    (E.ORGANIZATION, "address", E.ADDRESS),
)

_ACCESS_SERVICE = ("distribution", "accessService")


def data_product_profile() -> SearchProfile:
    return SearchProfile(
        kind=ProfileKind.DATA_PRODUCTS,
        root_type=E.DATA_PRODUCT,
        schema=DATA_PRODUCT_SCHEMA,
        stages=(
            FullTextStage(
                [
                    TextSource(fields=("title", "description"), keyword_fields=("keywords",), uid=True),
                    _IDENTIFIER_TEXT,
                    TextSource(path=("distribution",), fields=("title", "description"), uid=True),
                    TextSource(
                        path=_ACCESS_SERVICE,
                        fields=("name", "description"),
                        keyword_fields=("keywords",),
                        uid=True,
                    ),
                ]
            ),
            KeywordStage(),
            OrganisationStage([("publisher",), (*_ACCESS_SERVICE, "provider")]),
            DateRangeStage(("temporalExtent",)),
            BoundingBoxStage([("spatialExtent",), (*_ACCESS_SERVICE, "spatialExtent")]),
            CategoryNameStage("science_domains", "science_domains", [("category",)]),
            CategoryNameStage("service_types", "service_types", [(*_ACCESS_SERVICE, "category")]),
        ),
        facets=FacetSpec(
            organisation_paths=(("publisher",), (*_ACCESS_SERVICE, "provider")),
            science_domain_paths=(("category",),),
            service_type_paths=((*_ACCESS_SERVICE, "category"),),
        ),
    )


# ---------------------------------------------------------------------------
# Facilities
# ---------------------------------------------------------------------------

FACILITY_SCHEMA = RelationSchema.of(
    (E.FACILITY, "spatialExtent", E.LOCATION),
    (E.FACILITY, "category", E.CATEGORY),
    (E.FACILITY, "identifier", E.IDENTIFIER),
)


def facility_profile() -> SearchProfile:
    return SearchProfile(
        kind=ProfileKind.FACILITIES,
        root_type=E.FACILITY,
        schema=FACILITY_SCHEMA,
        stages=(
            FullTextStage(
                [
                    TextSource(fields=("title", "description"), keyword_fields=("keywords",), uid=True),
                    _IDENTIFIER_TEXT,
                ]
            ),
            KeywordStage(),
            OwnerOrganisationStage(),
            BoundingBoxStage([("spatialExtent",)]),
            FacilityTypeStage(),
        ),
        facets=FacetSpec(owner_organisations=True, science_domain_paths=(("category",),)),
        needs_category_index=True,
    )


# ---------------------------------------------------------------------------
# Organisations
# ---------------------------------------------------------------------------

ORGANIZATION_SCHEMA = RelationSchema.of(
    (E.ORGANIZATION, "address", E.ADDRESS),
    (E.ORGANIZATION, "identifier", E.IDENTIFIER),
)


def organization_profile() -> SearchProfile:
    return SearchProfile(
        kind=ProfileKind.ORGANISATIONS,
        root_type=E.ORGANIZATION,
        schema=ORGANIZATION_SCHEMA,
        stages=(
            FullTextStage([TextSource(fields=("legalName",), uid=True), _IDENTIFIER_TEXT]),
            CountryStage(("address",)),
        ),
    )


def default_profiles() -> dict[ProfileKind, SearchProfile]:
    return {
        ProfileKind.DATA_PRODUCTS: data_product_profile(),
        ProfileKind.FACILITIES: facility_profile(),
        ProfileKind.ORGANISATIONS: organization_profile(),
    }
