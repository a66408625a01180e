from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from restaurant_map.errors import InvalidBounds, UpstreamUnavailable
from restaurant_map.geo.models import IndexPage, Point, Rectangle
from restaurant_map.geo.spatial_index import InMemorySpatialIndex
from restaurant_map.restaurants.filters import FilterSpec
from restaurant_map.restaurants.models import PriceFilters
from restaurant_map.restaurants.query import BoundedQueryOrchestrator
from restaurant_map.restaurants.sync import IndexSyncReconciler
from restaurant_map.store.document_store import InMemoryDocumentStore

BAY_AREA = Rectangle(north=38.0, south=37.0, east=-122.0, west=-123.0)
NO_FILTERS = FilterSpec()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def index():
    return InMemorySpatialIndex()


@pytest.fixture
def orchestrator(store, index):
    return BoundedQueryOrchestrator(store, index)


def _seed(store, index, **fields) -> str:
    record = {"name": "Place", **fields}
    rid = store.insert("restaurants", record)
    IndexSyncReconciler(store, index).sync_one(rid)
    return rid


def test_end_to_end_scenario(store, index, orchestrator):
    rid = _seed(
        store, index,
        name="Diner", latitude=37.7749, longitude=-122.4194,
        lunch_price=45, categories=["American"],
    )

    result = orchestrator.execute(BAY_AREA, None, None, NO_FILTERS)
    assert [r.id for r in result.results] == [rid]

    french = FilterSpec.from_request(PriceFilters(), ["French"])
    assert orchestrator.execute(BAY_AREA, None, None, french).results == []


def test_results_stay_inside_rectangle(store, index, orchestrator):
    _seed(store, index, latitude=37.77, longitude=-122.41)
    _seed(store, index, latitude=34.05, longitude=-118.24)
    _seed(store, index, latitude=37.99, longitude=-122.01)

    for restaurant in orchestrator.execute(BAY_AREA, None, None, NO_FILTERS).results:
        assert BAY_AREA.contains(restaurant.point())


def test_price_filter_applied_after_lookup(store, index, orchestrator):
    cheap = _seed(store, index, latitude=37.77, longitude=-122.41, lunch_price=15)
    _seed(store, index, latitude=37.78, longitude=-122.42, lunch_price=80)
    spec = FilterSpec.from_request(PriceFilters(max_lunch_price=20))
    assert [r.id for r in orchestrator.execute(BAY_AREA, None, None, spec).results] == [cheap]


def test_empty_index_page_skips_document_fetch(index):
    store = MagicMock()
    orchestrator = BoundedQueryOrchestrator(store, index)
    result = orchestrator.execute(BAY_AREA, 10, None, NO_FILTERS)
    assert result.results == []
    assert result.next_cursor is None
    store.get_many.assert_not_called()


def test_empty_page_keeps_index_cursor():
    index = MagicMock()
    index.query.return_value = IndexPage(results=[], next_cursor="more")
    orchestrator = BoundedQueryOrchestrator(MagicMock(), index)
    assert orchestrator.execute(BAY_AREA, 10, None, NO_FILTERS).next_cursor == "more"


def test_deleted_restaurants_are_dropped(store, index, orchestrator):
    kept = _seed(store, index, latitude=37.77, longitude=-122.41)
    gone = _seed(store, index, latitude=37.78, longitude=-122.42)
    store.delete("restaurants", gone)

    result = orchestrator.execute(BAY_AREA, None, None, NO_FILTERS)
    assert [r.id for r in result.results] == [kept]
    assert result.candidates == 2


def test_cursor_follows_index_pages_not_filtered_count(store, index, orchestrator):
    for i in range(4):
        _seed(
            store, index, latitude=37.5 + i * 0.01, longitude=-122.5,
            rating=5 - i, categories=["French"] if i == 3 else ["Thai"],
        )
    french = FilterSpec.from_request(PriceFilters(), ["French"])

    first = orchestrator.execute(BAY_AREA, 2, None, french)
    assert first.results == []
    assert first.next_cursor is not None

    second = orchestrator.execute(BAY_AREA, 2, first.next_cursor, french)
    assert len(second.results) == 1
    assert second.next_cursor is None


def test_invalid_rectangle_raises(orchestrator):
    with pytest.raises(InvalidBounds):
        orchestrator.execute(
            Rectangle(north=100, south=37, east=-122, west=-123), None, None, NO_FILTERS,
        )


def test_index_failure_is_upstream_unavailable(store):
    index = MagicMock()
    index.query.side_effect = TimeoutError("index timed out")
    orchestrator = BoundedQueryOrchestrator(store, index)
    with pytest.raises(UpstreamUnavailable):
        orchestrator.execute(BAY_AREA, None, None, NO_FILTERS)


def test_store_failure_is_upstream_unavailable(index):
    index.insert("r1", Point(latitude=37.77, longitude=-122.41))
    store = MagicMock()
    store.get_many.side_effect = ConnectionError("store down")
    orchestrator = BoundedQueryOrchestrator(store, index)
    with pytest.raises(UpstreamUnavailable):
        orchestrator.execute(BAY_AREA, None, None, NO_FILTERS)


def test_nearest_returns_restaurants_with_distance(store, index, orchestrator):
    near = _seed(store, index, latitude=37.7749, longitude=-122.4194)
    far = _seed(store, index, latitude=37.8044, longitude=-122.2712)
    hits = orchestrator.nearest(Point(latitude=37.7749, longitude=-122.4194), 5)
    assert [r.id for r, _ in hits] == [near, far]
    assert hits[1][1] > hits[0][1]


def test_nearest_drops_deleted_restaurants(store, index, orchestrator):
    gone = _seed(store, index, latitude=37.7749, longitude=-122.4194)
    store.delete("restaurants", gone)
    assert orchestrator.nearest(Point(latitude=37.7749, longitude=-122.4194), 5) == []
