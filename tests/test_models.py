import pytest

from graph_repository.errors import InvalidQueryParameter
from graph_repository.models import (
    Direction,
    IndexedQuery,
    IndexQueryKind,
    Order,
    Page,
    PageRequest,
    Sort,
    WithinBoundingBox,
    WithinDistance,
    WithinWKT,
)


class TestGeoQueries:
    def test_bounding_box_serializes_lon_first(self):
        bbox = WithinBoundingBox(min_lat=56, min_lon=15, max_lat=57, max_lon=16)
        assert bbox.key == "bbox"
        assert bbox.param() == "[15.0, 16.0, 56.0, 57.0]"

    def test_within_distance_parameter(self):
        q = WithinDistance(lat=56.5, lon=15.5, radius_km=10)
        assert q.key == "withinDistance"
        assert q.param() == {"point": [15.5, 56.5], "distanceInKm": 10.0}

    def test_wkt_is_passed_through(self):
        wkt = "POLYGON ((15 56, 15 57, 16 57, 16 56, 15 56))"
        q = WithinWKT(wkt)
        assert q.key == "withinWKTGeometry"
        assert q.param() == wkt

    @pytest.mark.parametrize(
        "args",
        [
            (91, 15, 92, 16),
            (56, -181, 57, 16),
            (57, 15, 56, 16),
            ("abc", 15, 57, 16),
            (None, 15, 57, 16),
            (56, 15, 57, "east"),
        ],
    )
    def test_invalid_bounding_box(self, args):
        with pytest.raises(InvalidQueryParameter):
            WithinBoundingBox(*args)

    def test_bounding_box_across_antimeridian(self):
        bbox = WithinBoundingBox(min_lat=-20, min_lon=170, max_lat=-10, max_lon=-170)
        assert bbox.param() == "[170.0, -170.0, -20.0, -10.0]"

    def test_invalid_distance(self):
        with pytest.raises(InvalidQueryParameter):
            WithinDistance(lat=56, lon=15, radius_km=None)
        with pytest.raises(InvalidQueryParameter):
            WithinDistance(lat="north", lon=15, radius_km=1)
        with pytest.raises(InvalidQueryParameter):
            WithinDistance(lat=56, lon=15, radius_km=0)
        with pytest.raises(InvalidQueryParameter):
            WithinDistance(lat=-95, lon=15, radius_km=1)

    def test_blank_wkt(self):
        with pytest.raises(InvalidQueryParameter):
            WithinWKT("   ")


class TestPaging:
    def test_page_request_of(self):
        request = PageRequest.of(3, 10, Sort.by("name"))
        assert request.offset == 30
        assert request.page_size == 10
        assert request.page_number == 3
        assert request.next().offset == 40

    @pytest.mark.parametrize("offset,size", [(-1, 10), (0, 0), (0, -5)])
    def test_page_request_validation(self, offset, size):
        with pytest.raises(ValueError):
            PageRequest(offset, size)

    def test_page_properties(self):
        page = Page(content=["a", "b"], total_count=7, page_request=PageRequest.of(1, 2))
        assert page.number == 1
        assert page.number_of_elements == 2
        assert page.total_pages == 4
        assert page.has_next
        assert page.has_previous
        assert not page.is_first
        assert list(page) == ["a", "b"]

    def test_last_page(self):
        page = Page(content=["g"], total_count=7, page_request=PageRequest.of(3, 2))
        assert page.is_last
        assert not page.has_next


def test_sort_composition():
    sort = Sort.by("name").and_(Sort.by("age", direction=Direction.DESC))
    assert list(sort) == [Order("name"), Order("age", Direction.DESC)]
    assert sort.is_sorted
    assert not Sort.unsorted().is_sorted


def test_indexed_query_constructors():
    assert IndexedQuery.exact("name", "bob").kind is IndexQueryKind.EXACT
    assert IndexedQuery.expression("name", "bo*", index_name="people").index_name == "people"
    q = IndexedQuery.between("age", 20, 30)
    assert q.kind is IndexQueryKind.RANGE
    assert q.value == (20, 30)
