"""Unit tests for FilterCriteria parameter parsing and BoundingBox rendering."""

from __future__ import annotations

from datetime import datetime

from src.models.catalog import RecordStatus
from src.models.criteria import BoundingBox, FacetsType, FilterCriteria

_BBOX = {
    "epos:northernmostLatitude": "50",
    "epos:southernmostLatitude": "40",
    "epos:westernmostLongitude": "0",
    "epos:easternmostLongitude": "10",
}


class TestFromParams:
    def test_empty_params_activate_nothing(self) -> None:
        criteria = FilterCriteria.from_params({})
        assert criteria.text_terms == ()
        assert criteria.keywords == frozenset()
        assert criteria.bbox is None
        assert not criteria.has_date_range
        assert criteria.facets is False

    def test_text_terms_are_split_trimmed_and_lowered(self) -> None:
        criteria = FilterCriteria.from_params({"q": " Seismic ,  WAVES,,seismic"})
        assert criteria.text_terms == ("seismic", "waves")

    def test_keywords_lowered_organisations_kept_verbatim(self) -> None:
        criteria = FilterCriteria.from_params({"keywords": "GNSS, Geodesy", "organisations": "Org-A,org-b"})
        assert criteria.keywords == frozenset({"gnss", "geodesy"})
        assert criteria.organisations == frozenset({"Org-A", "org-b"})

    def test_unknown_keys_are_ignored(self) -> None:
        criteria = FilterCriteria.from_params({"page": "2", "q": "x"})
        assert criteria.text_terms == ("x",)

    def test_bbox_parsed_from_prefixed_keys(self) -> None:
        criteria = FilterCriteria.from_params(_BBOX)
        assert criteria.bbox == BoundingBox(north=50, south=40, east=10, west=0)

    def test_bbox_accepts_bare_keys(self) -> None:
        bare = {k.split(":", 1)[1]: v for k, v in _BBOX.items()}
        assert FilterCriteria.from_params(bare).bbox is not None

    def test_incomplete_bbox_is_inactive(self) -> None:
        partial = dict(_BBOX)
        del partial["epos:easternmostLongitude"]
        assert FilterCriteria.from_params(partial).bbox is None

    def test_non_numeric_bbox_disables_only_the_bbox(self) -> None:
        params = {**_BBOX, "epos:northernmostLatitude": "north", "q": "waves"}
        criteria = FilterCriteria.from_params(params)
        assert criteria.bbox is None
        assert criteria.text_terms == ("waves",)

    def test_inverted_latitudes_are_rejected(self) -> None:
        params = {**_BBOX, "epos:northernmostLatitude": "10", "epos:southernmostLatitude": "20"}
        assert FilterCriteria.from_params(params).bbox is None

    def test_dates_accept_z_suffix_and_space_separator(self) -> None:
        criteria = FilterCriteria.from_params(
            {"startDate": "2011-01-01T00:00:00Z", "schema:endDate": "2012-06-30 12:00:00"}
        )
        assert criteria.start_date == datetime(2011, 1, 1)
        assert criteria.end_date == datetime(2012, 6, 30, 12)
        assert criteria.has_date_range

    def test_dates_with_offsets_are_converted_to_utc(self) -> None:
        criteria = FilterCriteria.from_params(
            {"startDate": "2020-01-01T23:00:00-05:00", "endDate": "2020-01-02T10:00:00+02:00"}
        )
        assert criteria.start_date == datetime(2020, 1, 2, 4)
        assert criteria.end_date == datetime(2020, 1, 2, 8)

    def test_bad_date_leaves_other_bound(self) -> None:
        criteria = FilterCriteria.from_params({"startDate": "yesterday", "endDate": "2012-01-01"})
        assert criteria.start_date is None
        assert criteria.end_date == datetime(2012, 1, 1)

    def test_facets_mode(self) -> None:
        criteria = FilterCriteria.from_params({"facets": "TRUE", "facetstype": "DataProviders"})
        assert criteria.facets is True
        assert criteria.facets_type is FacetsType.DATA_PROVIDERS

    def test_unknown_facets_type_is_ignored(self) -> None:
        assert FilterCriteria.from_params({"facetstype": "colours"}).facets_type is None

    def test_versioning_statuses(self) -> None:
        criteria = FilterCriteria.from_params({"versioningStatus": "draft,PUBLISHED"})
        assert criteria.versioning_status == (RecordStatus.DRAFT, RecordStatus.PUBLISHED)

    def test_unknown_versioning_status_disables_field(self) -> None:
        assert FilterCriteria.from_params({"versioningStatus": "LIVE"}).versioning_status == ()

    def test_countries_lowered_and_record_id(self) -> None:
        criteria = FilterCriteria.from_params({"country": "Italy, FRANCE", "id": "org-a"})
        assert criteria.countries == frozenset({"italy", "france"})
        assert criteria.record_id == "org-a"


class TestBoundingBoxWkt:
    def test_regular_box_is_polygon(self) -> None:
        wkt = BoundingBox(north=50, south=40, east=10, west=0).to_wkt()
        assert wkt.startswith("POLYGON")
        assert "0.0 40.0" in wkt and "10.0 50.0" in wkt

    def test_antimeridian_box_is_multipolygon(self) -> None:
        wkt = BoundingBox(north=10, south=-10, east=-170, west=170).to_wkt()
        assert wkt.startswith("MULTIPOLYGON")
        assert "180.0" in wkt and "-180.0" in wkt
