from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import pandas as pd

from .document_store import DocumentStore

logger = logging.getLogger(__name__)

RESTAURANT_COLUMNS = [
    "key",
    "name",
    "rating",
    "latitude",
    "longitude",
    "address",
    "website_url",
    "yelp_url",
    "open_table_url",
    "categories",
    "brunch_price",
    "lunch_price",
    "dinner_price",
]


def _split_categories(raw: Any) -> list[str]:
    if raw is None or pd.isna(raw):
        return []
    return [c.strip() for c in str(raw).split(",") if c.strip()]


def _records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """DataFrame rows as dicts with missing cells dropped."""
    out: list[dict[str, Any]] = []
    for row in df.to_dict(orient="records"):
        out.append({k: v for k, v in row.items() if isinstance(v, list) or not pd.isna(v)})
    return out


def load_restaurants(path: Path) -> list[dict[str, Any]]:
    df = pd.read_csv(path)
    df = df[[c for c in RESTAURANT_COLUMNS if c in df.columns]]
    df["categories"] = df["categories"].apply(_split_categories)
    for col in ("rating", "latitude", "longitude", "brunch_price", "lunch_price", "dinner_price"):
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return _records(df)


def load_events(path: Path) -> list[dict[str, Any]]:
    df = pd.read_csv(path)
    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
    return _records(df)


def load_menus(path: Path) -> list[dict[str, Any]]:
    df = pd.read_csv(path)
    df["meal"] = df["meal"].str.strip().str.lower()
    df["price"] = pd.to_numeric(df["price"], errors="coerce")
    return _records(df.dropna(subset=["price"]))


def seed_store(store: DocumentStore, data_dir: Path) -> dict[str, int]:
    """Load the bundled catalogue into an empty *store*.

    Does nothing when restaurants are already present.
    """
    if next(store.scan("restaurants"), None) is not None:
        logger.info("Restaurants already seeded")
        return {"restaurants": 0, "events": 0, "menus": 0}

    restaurant_ids: dict[str, str] = {}
    for record in load_restaurants(data_dir / "restaurants.csv"):
        restaurant_ids[record["name"]] = store.insert("restaurants", record)

    sync_time = time.time()
    event_ids: dict[str, str] = {}
    for record in load_events(data_dir / "events.csv"):
        record["sync_time"] = sync_time
        event_ids[record["name"]] = store.insert("events", record)

    menus = 0
    for record in load_menus(data_dir / "menus.csv"):
        restaurant_id = restaurant_ids.get(record["restaurant"])
        event_id = event_ids.get(record["event"])
        if restaurant_id is None or event_id is None:
            logger.warning("Skipping seed menu with unknown references: %s", record)
            continue
        store.insert("menus", {
            "restaurant": restaurant_id,
            "event": event_id,
            "meal": record["meal"],
            "price": float(record["price"]),
            "url": record.get("url"),
            "sync_time": sync_time,
        })
        menus += 1

    counts = {"restaurants": len(restaurant_ids), "events": len(event_ids), "menus": menus}
    logger.info("Seeded %s", counts)
    return counts
