"""Geospatial matching of catalog locations against a query region.

Locations are stored as WKT text (points, polygons, multipolygons).  WKT
is parsed with shapely and tested with ``intersects``: two geometries
match iff they share at least one point, so a geometry always matches
itself and a point on a polygon's boundary matches the polygon.

Parsed geometries are not cached between requests; each request parses
the query box once and every candidate location as it is visited.
"""

from __future__ import annotations

from typing import Iterable

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry.base import BaseGeometry

from src.models.criteria import BoundingBox
from src.utils.errors import MalformedGeometryError
from src.utils.logging import get_logger

logger = get_logger(__name__)


def parse_wkt(text: str | None) -> BaseGeometry:
    """Parse *text* into a geometry.

    Raises
    ------
    MalformedGeometryError
        If *text* is empty, not valid WKT, or describes an empty geometry.
    """
    if not text or not str(text).strip():
        raise MalformedGeometryError("Empty WKT")
    try:
        geometry = wkt.loads(str(text))
    except (ShapelyError, ValueError, TypeError) as exc:
        raise MalformedGeometryError(f"Invalid WKT {str(text)[:80]!r}: {exc}") from exc
    if geometry.is_empty:
        raise MalformedGeometryError(f"Empty geometry {str(text)[:80]!r}")
    return geometry


def intersects(first: BaseGeometry, second: BaseGeometry) -> bool:
    return bool(first.intersects(second))


class GeometryMatcher:
    """A parsed query region, tested against candidate WKT strings.

    Built once per request; safe to share between filter workers because
    it only reads its geometry.
    """

    def __init__(self, region: BaseGeometry) -> None:
        self._region = region

    @classmethod
    def from_bbox(cls, bbox: BoundingBox) -> GeometryMatcher:
        return cls(parse_wkt(bbox.to_wkt()))

    @property
    def region(self) -> BaseGeometry:
        return self._region

    def matches(self, location_wkt: str | None) -> bool:
        """True when *location_wkt* intersects the region.

        A malformed location is logged and treated as not matching.
        """
        try:
            return intersects(self._region, parse_wkt(location_wkt))
        except MalformedGeometryError as exc:
            logger.warning("malformed_geometry", error=exc.message)
            return False

    def matches_any(self, locations: Iterable[str | None]) -> bool:
        return any(self.matches(location) for location in locations)
