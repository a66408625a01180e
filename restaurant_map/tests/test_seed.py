from __future__ import annotations

from restaurant_map.config import DEFAULT_APP_CONFIG
from restaurant_map.store.data_store import get_index, get_store, reset_state
from restaurant_map.store.document_store import InMemoryDocumentStore
from restaurant_map.store.seed import load_menus, load_restaurants, seed_store

DATA_DIR = DEFAULT_APP_CONFIG.data_dir


def test_load_restaurants_splits_categories():
    records = {r["key"]: r for r in load_restaurants(DATA_DIR / "restaurants.csv")}
    assert len(records) == 10
    zuni = records["zuni-cafe"]
    assert zuni["categories"] == ["American", "Mediterranean", "Italian"]
    assert zuni["brunch_price"] == 45


def test_load_restaurants_drops_missing_prices():
    records = {r["key"]: r for r in load_restaurants(DATA_DIR / "restaurants.csv")}
    assert "brunch_price" not in records["the-french-laundry"]


def test_load_menus_normalises_meal():
    menus = load_menus(DATA_DIR / "menus.csv")
    assert {m["meal"] for m in menus} <= {"brunch", "lunch", "dinner"}
    assert all("url" not in m for m in menus)


def test_seed_store_counts():
    store = InMemoryDocumentStore()
    counts = seed_store(store, DATA_DIR)
    assert counts == {"restaurants": 10, "events": 5, "menus": 23}
    assert store.count("restaurants") == 10


def test_seed_store_skips_when_populated():
    store = InMemoryDocumentStore()
    seed_store(store, DATA_DIR)
    assert seed_store(store, DATA_DIR) == {"restaurants": 0, "events": 0, "menus": 0}
    assert store.count("restaurants") == 10


def test_reset_state_with_seed_indexes_catalogue():
    reset_state(seed=True)
    assert get_store().count("restaurants") == 10
    assert len(get_index()) == 10


def test_reset_state_without_seed_is_empty():
    reset_state(seed=False)
    assert get_store().count("restaurants") == 0
    assert len(get_index()) == 0
