"""Composable filter stages over a frozen request snapshot.

Every stage follows the same two-step protocol:

    bind(context)  -> predicate or None
        Reads the criteria once, parses whatever needs parsing (a bbox
        polygon, a requested-id set) and returns a pure ``Record -> bool``
        closure.  ``None`` means the criteria do not activate the stage.
    predicate(record)
        Reads only the record and the snapshot; never calls the store.

Stages are generic: what they look at is configured with relation paths
(e.g. ``("distribution", "accessService", "provider")``) so one class
serves every search profile.

Matching rules:

    FullTextStage          AND across terms, OR across scanned fields
    KeywordStage           own keyword set intersects the requested set
    OrganisationStage      reachable organisations, expanded through
                           their provider groups, intersect the request
    OwnerOrganisationStage same, starting from the records' owners
    DateRangeStage         a temporal extent overlaps the requested range
    BoundingBoxStage       a reachable location intersects the bbox
    CategoryNameStage      reachable category *names* intersect the request
    CountryStage           a reachable address country is requested
    FacilityTypeStage      the record's type uid maps to a requested id
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.models.catalog import Record
from src.models.criteria import FilterCriteria, naive_utc
from src.models.snapshot import RelationPath, Snapshot
from src.services.geospatial import GeometryMatcher
from src.utils.logging import get_logger
from src.utils.text_normalizer import as_text_list, contains_term, keyword_set

logger = get_logger(__name__)

Predicate = Callable[[Record], bool]


@dataclass(frozen=True)
class StageContext:
    """Everything a stage may read while binding and matching."""

    criteria: FilterCriteria
    snapshot: Snapshot
    groups: IProviderGroupResolver
    # category uid -> category instance id (facility type matching)
    category_index: Mapping[str, str] = field(default_factory=dict)


class FilterStage(ABC):
    """Base class of all filter stages."""

    name: str = "stage"

    @abstractmethod
    def bind(self, context: StageContext) -> Predicate | None:
        """Return the stage's predicate, or ``None`` when it is inactive."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


# ---------------------------------------------------------------------------
# Full text
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextSource:
    """Which fields of which records a full-text scan looks at.

    Attributes
    ----------
    path:
        Relation path from the root record; ``()`` is the record itself.
    fields:
        Attributes matched by case-insensitive substring.
    keyword_fields:
        Comma-separated keyword attributes matched exactly (after trim and
        lower-casing).
    uid:
        Also match the record uid by substring.
    identifier_pair:
        The records are identifiers: also match ``type + identifier``.
    """

    path: RelationPath = ()
    fields: tuple[str, ...] = ()
    keyword_fields: tuple[str, ...] = ()
    uid: bool = False
    identifier_pair: bool = False


def _source_texts(record: Record, source: TextSource) -> tuple[list[str], set[str]]:
    substrings: list[str] = []
    for name in source.fields:
        substrings.extend(record.texts(name))
    if source.uid and record.uid:
        substrings.append(record.uid)
    if source.identifier_pair:
        kind = " ".join(record.texts("type")).lower()
        value = " ".join(record.texts("identifier")).lower()
        if kind and value:
            substrings.append(kind + value)
    keywords: set[str] = set()
    for name in source.keyword_fields:
        for raw in record.texts(name):
            keywords |= keyword_set(raw)
    return substrings, keywords


class FullTextStage(FilterStage):
    """Every ``q`` term must be satisfied by at least one scanned field."""

    name = "full_text"

    def __init__(self, sources: Iterable[TextSource]) -> None:
        self._sources = tuple(sources)

    def bind(self, context: StageContext) -> Predicate | None:
        terms = context.criteria.text_terms
        if not terms:
            return None
        snapshot = context.snapshot
        sources = self._sources

        def predicate(record: Record) -> bool:
            pending = set(terms)
            for source in sources:
                for target in snapshot.walk(record, source.path):
                    substrings, keywords = _source_texts(target, source)
                    pending = {
                        term
                        for term in pending
                        if term not in keywords
                        and not contains_term(substrings, term)
                    }
                    if not pending:
                        return True
            return not pending

        return predicate


# ---------------------------------------------------------------------------
# Keywords
# ---------------------------------------------------------------------------


class KeywordStage(FilterStage):
    name = "keywords"

    def __init__(self, field_name: str = "keywords") -> None:
        self._field = field_name

    def bind(self, context: StageContext) -> Predicate | None:
        requested = context.criteria.keywords
        if not requested:
            return None
        field_name = self._field

        def predicate(record: Record) -> bool:
            own: set[str] = set()
            for raw in record.texts(field_name):
                own |= keyword_set(raw)
            return not own.isdisjoint(requested)

        return predicate


# ---------------------------------------------------------------------------
# Organisations
# ---------------------------------------------------------------------------


def expand_organizations(groups: IProviderGroupResolver, ids: Iterable[str]) -> set[str]:
    """Union of the provider-group expansions of *ids*."""
    expanded: set[str] = set()
    for organization_id in ids:
        expanded |= groups.expand(organization_id).expansion()
    return expanded


class OrganisationStage(FilterStage):
    """Organisations reachable along *paths*, expanded via provider groups."""

    name = "organisations"

    def __init__(self, paths: Iterable[RelationPath]) -> None:
        self._paths = tuple(tuple(p) for p in paths)

    def bind(self, context: StageContext) -> Predicate | None:
        requested = context.criteria.organisations
        if not requested:
            return None
        snapshot, groups, paths = context.snapshot, context.groups, self._paths

        def predicate(record: Record) -> bool:
            reached = [org.instance_id for org in snapshot.walk_many(record, paths)]
            return not expand_organizations(groups, reached).isdisjoint(requested)

        return predicate


class OwnerOrganisationStage(FilterStage):
    """Restricts records to those owned by a requested organisation.

    Owners are the organisations whose ``owns`` relation points at the
    record, plus any reachable along *paths*; each is expanded through its
    provider group before comparison.
    """

    name = "owner_organisations"

    def __init__(self, paths: Iterable[RelationPath] = ()) -> None:
        self._paths = tuple(tuple(p) for p in paths)

    def bind(self, context: StageContext) -> Predicate | None:
        requested = context.criteria.organisations
        if not requested:
            return None
        snapshot, groups, paths = context.snapshot, context.groups, self._paths

        def predicate(record: Record) -> bool:
            owners = set(groups.owners_of(record.instance_id))
            owners.update(org.instance_id for org in snapshot.walk_many(record, paths))
            return not expand_organizations(groups, owners).isdisjoint(requested)

        return predicate


# ---------------------------------------------------------------------------
# Temporal extent
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a stored date/date-time; ``None`` when absent or unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return naive_utc(value)
    text = str(value).strip().replace("Z", "")
    if not text:
        return None
    try:
        return naive_utc(datetime.fromisoformat(text.replace(" ", "T")))
    except ValueError:
        logger.debug("unparseable_timestamp", value=text)
        return None


def period_overlaps(
    period_start: datetime | None,
    period_end: datetime | None,
    start: datetime | None,
    end: datetime | None,
) -> bool:
    """Overlap test between a stored period and a requested range.

    A requested start needs a period end that is not before it; a
    requested end needs a period start that is not after it.  A missing
    period bound fails the comparison it is needed for.
    """
    if start is not None and (period_end is None or period_end < start):
        return False
    if end is not None and (period_start is None or period_start > end):
        return False
    return True


class DateRangeStage(FilterStage):
    name = "date_range"

    def __init__(self, path: RelationPath = ("temporalExtent",)) -> None:
        self._path = tuple(path)

    def bind(self, context: StageContext) -> Predicate | None:
        criteria = context.criteria
        if not criteria.has_date_range:
            return None
        snapshot, path = context.snapshot, self._path
        start, end = criteria.start_date, criteria.end_date

        def predicate(record: Record) -> bool:
            return any(
                period_overlaps(
                    parse_timestamp(period.attr("startDate")),
                    parse_timestamp(period.attr("endDate")),
                    start,
                    end,
                )
                for period in snapshot.walk(record, path)
            )

        return predicate


# ---------------------------------------------------------------------------
# Bounding box
# ---------------------------------------------------------------------------


class BoundingBoxStage(FilterStage):
    """Any location reachable along *paths* intersects the query box.

    The box is parsed once in :meth:`bind`; if that fails the exception
    propagates to the pipeline, which logs it and skips the stage.
    """

    name = "bounding_box"

    def __init__(self, paths: Iterable[RelationPath], wkt_field: str = "location") -> None:
        self._paths = tuple(tuple(p) for p in paths)
        self._wkt_field = wkt_field

    def bind(self, context: StageContext) -> Predicate | None:
        bbox = context.criteria.bbox
        if bbox is None:
            return None
        matcher = GeometryMatcher.from_bbox(bbox)
        snapshot, paths, wkt_field = context.snapshot, self._paths, self._wkt_field

        def predicate(record: Record) -> bool:
            return matcher.matches_any(
                location.attr(wkt_field) for location in snapshot.walk_many(record, paths)
            )

        return predicate


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryNameStage(FilterStage):
    """Reachable category names intersect a requested name set.

    Matching is on the human-readable ``name`` attribute, not on ids.
    """

    def __init__(self, name: str, criteria_field: str, paths: Iterable[RelationPath]) -> None:
        self.name = name
        self._criteria_field = criteria_field
        self._paths = tuple(tuple(p) for p in paths)

    def bind(self, context: StageContext) -> Predicate | None:
        requested: frozenset[str] = getattr(context.criteria, self._criteria_field)
        if not requested:
            return None
        snapshot, paths = context.snapshot, self._paths

        def predicate(record: Record) -> bool:
            for category in snapshot.walk_many(record, paths):
                if not requested.isdisjoint(category.texts("name")):
                    return True
            return False

        return predicate


class FacilityTypeStage(FilterStage):
    """The record's type (a category uid) maps to a requested category id."""

    name = "facility_types"

    def __init__(self, field_name: str = "type") -> None:
        self._field = field_name

    def bind(self, context: StageContext) -> Predicate | None:
        requested = context.criteria.facility_types
        if not requested:
            return None
        index, field_name = context.category_index, self._field

        def predicate(record: Record) -> bool:
            return any(
                index.get(uid) in requested for uid in as_text_list(record.attr(field_name))
            )

        return predicate


# ---------------------------------------------------------------------------
# Country
# ---------------------------------------------------------------------------


class CountryStage(FilterStage):
    name = "country"

    def __init__(self, path: RelationPath = ("address",), field_name: str = "country") -> None:
        self._path = tuple(path)
        self._field = field_name

    def bind(self, context: StageContext) -> Predicate | None:
        requested = context.criteria.countries
        if not requested:
            return None
        snapshot, path, field_name = context.snapshot, self._path, self._field

        def predicate(record: Record) -> bool:
            for address in snapshot.walk(record, path):
                if any(c.strip().lower() in requested for c in address.texts(field_name)):
                    return True
            return False

        return predicate
