"""Typed search criteria, validated once at the request boundary.

The HTTP layer (and the CLI) hand over a flat string-keyed parameter map.
:meth:`FilterCriteria.from_params` turns it into a frozen model with one
optional field per recognised query key.  A field left as ``None`` (or an
empty set) switches its filter stage off.

Invalid syntax is never fatal: a bad date, a non-numeric bbox corner or an
unknown facet type raises :class:`ParameterParseError` internally, which is
logged and leaves that one field unset.

# ─── RECOGNISED KEYS ──────────────────────────────────────────────────
#
#   q                              comma-separated free-text terms
#   keywords                       comma-separated keywords
#   organisations                  comma-separated organisation ids
#   country                        comma-separated country names
#   epos:northernmostLatitude      \
#   epos:southernmostLatitude       | bounding box (all four required;
#   epos:westernmostLongitude       | the "epos:" prefix is optional)
#   epos:easternmostLongitude      /
#   startDate / schema:startDate   ISO date or date-time
#   endDate / schema:endDate       ISO date or date-time
#   sciencedomains                 comma-separated science-domain names
#   servicetypes                   comma-separated service-type names
#   facilitytypes                  comma-separated facility-type ids
#   facets, facetstype             facet-mode toggle and selector
#   versioningStatus               comma-separated statuses (backoffice)
#   id                             single-record lookup (organisations)
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict

from src.models.catalog import RecordStatus
from src.utils.errors import ParameterParseError
from src.utils.logging import get_logger
from src.utils.text_normalizer import split_terms

_logger = get_logger(__name__)

_T = TypeVar("_T")

NORTH_LAT = "epos:northernmostLatitude"
SOUTH_LAT = "epos:southernmostLatitude"
WEST_LON = "epos:westernmostLongitude"
EAST_LON = "epos:easternmostLongitude"


class FacetsType(str, Enum):  # noqa: UP042
    """Which grouping the facet-mode response is organised by."""

    CATEGORIES = "categories"
    DATA_PROVIDERS = "dataproviders"
    SERVICE_PROVIDERS = "serviceproviders"


class RequestUser(BaseModel):
    """The authenticated caller, when there is one (backoffice access)."""

    model_config = ConfigDict(frozen=True)

    auth_identifier: str
    is_admin: bool = False


class BoundingBox(BaseModel):
    """Rectangular query region in WGS84 degrees."""

    model_config = ConfigDict(frozen=True)

    north: float
    south: float
    east: float
    west: float

    def to_wkt(self) -> str:
        """Render the box as WKT.

        A box whose west edge lies east of its east edge crosses the
        antimeridian and is rendered as two polygons.
        """
        if self.west <= self.east:
            return f"POLYGON (({_ring(self.west, self.east, self.south, self.north)}))"
        return (
            "MULTIPOLYGON ("
            f"(({_ring(self.west, 180.0, self.south, self.north)})), "
            f"(({_ring(-180.0, self.east, self.south, self.north)}))"
            ")"
        )


def _ring(west: float, east: float, south: float, north: float) -> str:
    corners = [(west, south), (east, south), (east, north), (west, north), (west, south)]
    return ", ".join(f"{lon} {lat}" for lon, lat in corners)


class FilterCriteria(BaseModel):
    """All recognised search parameters, parsed and normalised."""

    model_config = ConfigDict(frozen=True)

    text_terms: tuple[str, ...] = ()
    keywords: frozenset[str] = frozenset()
    organisations: frozenset[str] = frozenset()
    countries: frozenset[str] = frozenset()
    bbox: BoundingBox | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    science_domains: frozenset[str] = frozenset()
    service_types: frozenset[str] = frozenset()
    facility_types: frozenset[str] = frozenset()
    facets: bool = False
    facets_type: FacetsType | None = None
    versioning_status: tuple[RecordStatus, ...] = ()
    record_id: str | None = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> FilterCriteria:
        """Validate a flat parameter map into a :class:`FilterCriteria`.

        Unknown keys are ignored.  Each recognised key is parsed on its own,
        so one malformed value never disables the others.
        """
        raw = {k: str(v) for k, v in params.items() if v is not None}

        def parsed(name: str, parser: Callable[[], _T], default: _T) -> _T:
            try:
                return parser()
            except ParameterParseError as exc:
                _logger.warning("parameter_parse_failed", parameter=name, error=str(exc))
                return default

        return cls(
            text_terms=tuple(split_terms(raw.get("q"), lower=True)),
            keywords=frozenset(split_terms(raw.get("keywords"), lower=True)),
            organisations=frozenset(split_terms(raw.get("organisations"))),
            countries=frozenset(split_terms(raw.get("country"), lower=True)),
            bbox=parsed("bbox", lambda: _parse_bbox(raw), None),
            start_date=parsed("startDate", lambda: _parse_date(raw, "startDate"), None),
            end_date=parsed("endDate", lambda: _parse_date(raw, "endDate"), None),
            science_domains=frozenset(split_terms(raw.get("sciencedomains"))),
            service_types=frozenset(split_terms(raw.get("servicetypes"))),
            facility_types=frozenset(split_terms(raw.get("facilitytypes"))),
            facets=raw.get("facets", "").strip().lower() == "true",
            facets_type=parsed("facetstype", lambda: _parse_facets_type(raw), None),
            versioning_status=parsed(
                "versioningStatus", lambda: _parse_statuses(raw), ()
            ),
            record_id=raw.get("id") or None,
        )


# ---------------------------------------------------------------------------
# Field parsers: each raises ParameterParseError on bad syntax.
# ---------------------------------------------------------------------------


def _lookup(raw: Mapping[str, str], key: str) -> str | None:
    """Find *key* with or without its ``epos:`` / ``schema:`` prefix."""
    if key in raw:
        return raw[key]
    bare = key.split(":", 1)[-1]
    for prefix in ("", "epos:", "schema:"):
        if prefix + bare in raw:
            return raw[prefix + bare]
    return None


def _parse_bbox(raw: Mapping[str, str]) -> BoundingBox | None:
    values = {key: _lookup(raw, key) for key in (NORTH_LAT, SOUTH_LAT, WEST_LON, EAST_LON)}
    if any(v is None for v in values.values()):
        return None
    try:
        north, south, west, east = (float(values[k]) for k in (NORTH_LAT, SOUTH_LAT, WEST_LON, EAST_LON))
    except ValueError as exc:
        raise ParameterParseError(f"Bounding box corners must be numbers: {values}") from exc
    if not (-90.0 <= south <= north <= 90.0):
        raise ParameterParseError(f"Invalid latitude range south={south} north={north}")
    if not (-180.0 <= west <= 180.0 and -180.0 <= east <= 180.0):
        raise ParameterParseError(f"Invalid longitude west={west} east={east}")
    return BoundingBox(north=north, south=south, east=east, west=west)


def naive_utc(value: datetime) -> datetime:
    """*value* as a naive UTC datetime; naive input is taken to be UTC already."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


def _parse_date(raw: Mapping[str, str], key: str) -> datetime | None:
    value = _lookup(raw, key)
    if value is None or not value.strip():
        return None
    text = value.strip().replace("Z", "")
    try:
        parsed = datetime.fromisoformat(text.replace(" ", "T"))
    except ValueError as exc:
        raise ParameterParseError(f"Invalid date for {key}: {value!r}") from exc
    return naive_utc(parsed)


def _parse_facets_type(raw: Mapping[str, str]) -> FacetsType | None:
    value = raw.get("facetstype")
    if not value:
        return None
    try:
        return FacetsType(value.strip().lower())
    except ValueError as exc:
        raise ParameterParseError(f"Unknown facetstype {value!r}") from exc


def _parse_statuses(raw: Mapping[str, str]) -> tuple[RecordStatus, ...]:
    try:
        return tuple(RecordStatus(s.upper()) for s in split_terms(raw.get("versioningStatus")))
    except ValueError as exc:
        raise ParameterParseError(
            f"Unknown versioningStatus {raw.get('versioningStatus')!r}"
        ) from exc
