from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import BackgroundTasks

from ..errors import NotFound
from ..events.service import upsert_menu
from ..store.document_store import DocumentStore
from .filters import FilterSpec, matches_price
from .models import (
    EnrichmentData,
    MealType,
    Restaurant,
    RestaurantCreate,
    ScrapedRestaurant,
    StoreScrapedResponse,
)
from .sync import IndexSyncReconciler

logger = logging.getLogger(__name__)

# Fields copied into the spatial index entry.
_INDEXED_FIELDS = ("latitude", "longitude", "categories", "rating")
_VALID_MEALS = {m.value for m in MealType}


def _touches_index(fields: dict[str, Any]) -> bool:
    return any(f in fields for f in _INDEXED_FIELDS)


class RestaurantRepository:
    """Restaurant documents plus the index syncs their writes require."""

    def __init__(self, store: DocumentStore, reconciler: IndexSyncReconciler) -> None:
        self.store = store
        self.reconciler = reconciler

    # ── Reads ────────────────────────────────────────────────────────────

    def list_restaurants(self) -> list[Restaurant]:
        return [Restaurant(**doc) for doc in self.store.scan("restaurants")]

    def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        doc = self.store.get("restaurants", restaurant_id)
        return Restaurant(**doc) if doc is not None else None

    def list_categories(self) -> list[str]:
        categories: set[str] = set()
        for doc in self.store.scan("restaurants"):
            categories.update(doc.get("categories") or [])
        return sorted(categories)

    def list_with_price_filter(self, spec: FilterSpec) -> list[Restaurant]:
        return [r for r in self.list_restaurants() if matches_price(r, spec)]

    # ── Writes ───────────────────────────────────────────────────────────

    def add_restaurant(
        self,
        data: RestaurantCreate,
        background_tasks: BackgroundTasks | None = None,
    ) -> str:
        record = data.model_dump(exclude_none=True)
        restaurant_id = self.store.insert("restaurants", record)
        if data.latitude is not None and data.longitude is not None:
            self.reconciler.schedule_sync(restaurant_id, background_tasks)
        return restaurant_id

    def patch_restaurant(
        self,
        restaurant_id: str,
        fields: dict[str, Any],
        background_tasks: BackgroundTasks | None = None,
    ) -> Restaurant:
        existing = self.store.get("restaurants", restaurant_id)
        if existing is None:
            raise NotFound("Restaurant", restaurant_id)

        # Name is required and cannot be cleared.
        if "name" in fields and not fields["name"]:
            fields = {k: v for k, v in fields.items() if k != "name"}

        self.store.patch("restaurants", restaurant_id, fields)
        if _touches_index(fields):
            self.reconciler.schedule_sync(restaurant_id, background_tasks)

        return Restaurant(**self.store.get("restaurants", restaurant_id))

    def update_from_enrichment(
        self,
        restaurant_id: str,
        enriched: EnrichmentData,
        background_tasks: BackgroundTasks | None = None,
    ) -> dict[str, Any]:
        """Apply enrichment results. Only fields the enrichment actually
        produced are written; empty strings and empty lists are ignored."""
        existing = self.store.get("restaurants", restaurant_id)
        if existing is None:
            raise NotFound("Restaurant", restaurant_id)

        updates: dict[str, Any] = {}
        for name in ("address", "open_table_url", "website_url", "yelp_url"):
            value = getattr(enriched, name)
            if value:
                updates[name] = value
        for name in ("latitude", "longitude", "rating"):
            value = getattr(enriched, name)
            if value is not None:
                updates[name] = value
        if enriched.categories:
            updates["categories"] = enriched.categories

        if not updates:
            logger.info("No enrichment needed for restaurant %s", existing["name"])
            return updates

        self.store.patch("restaurants", restaurant_id, updates)
        logger.info("Enriched restaurant %s with %s", existing["name"], sorted(updates))

        if _touches_index(updates):
            self.reconciler.schedule_sync(restaurant_id, background_tasks)
        return updates

    def store_scraped_restaurants(
        self,
        event_id: str,
        restaurants: list[ScrapedRestaurant],
        background_tasks: BackgroundTasks | None = None,
    ) -> StoreScrapedResponse:
        """Upsert scraped restaurants and their menus for one event.

        Restaurants are matched on their dedupe ``key``; menus on
        (restaurant, event, meal).
        """
        if self.store.get("events", event_id) is None:
            raise NotFound("Event", event_id)

        restaurants_processed = 0
        menus_processed = 0
        sync_time = time.time()

        for scraped in restaurants:
            if not scraped.name:
                logger.warning("Skipping scraped restaurant with no name (key=%s)", scraped.key)
                continue

            existing = self.store.first("restaurants", "by_key", key=scraped.key)
            if existing is not None:
                restaurant_id = existing["id"]
                updates = {
                    "website_url": scraped.website_url or existing.get("website_url"),
                    "open_table_url": scraped.open_table_url or existing.get("open_table_url"),
                    "yelp_url": scraped.yelp_url or existing.get("yelp_url"),
                    "categories": scraped.categories or existing.get("categories"),
                    "address": scraped.address or existing.get("address"),
                    "latitude": scraped.latitude or existing.get("latitude"),
                    "longitude": scraped.longitude or existing.get("longitude"),
                    "rating": scraped.rating or existing.get("rating"),
                }
                self.store.patch("restaurants", restaurant_id, updates)
                resync = any(updates[f] != existing.get(f) for f in _INDEXED_FIELDS)
                logger.info("Updated existing restaurant: %s", scraped.name)
            else:
                restaurant_id = self.store.insert("restaurants", {
                    "key": scraped.key,
                    "name": scraped.name,
                    "address": scraped.address,
                    "website_url": scraped.website_url,
                    "open_table_url": scraped.open_table_url,
                    "yelp_url": scraped.yelp_url,
                    "categories": scraped.categories or [],
                    "latitude": scraped.latitude,
                    "longitude": scraped.longitude,
                    "rating": scraped.rating,
                })
                resync = scraped.latitude is not None and scraped.longitude is not None
                logger.info("Created new restaurant: %s", scraped.name)

            restaurants_processed += 1

            prices: dict[str, float] = {}
            for menu in scraped.menus:
                if not menu.meal or not menu.price:
                    logger.warning("Skipping menu for %s: missing meal type or price", scraped.name)
                    continue
                meal = menu.meal.lower()
                if meal not in _VALID_MEALS:
                    logger.warning("Skipping menu for %s: invalid meal type %r", scraped.name, menu.meal)
                    continue

                prices[f"{meal}_price"] = menu.price
                upsert_menu(self.store, restaurant_id, event_id, meal, menu.price, menu.url, sync_time)
                menus_processed += 1

            if prices:
                self.store.patch("restaurants", restaurant_id, prices)

            if resync:
                self.reconciler.schedule_sync(restaurant_id, background_tasks)

        logger.info(
            "Processed %d restaurants and %d menus", restaurants_processed, menus_processed,
        )
        self.store.patch("events", event_id, {"sync_time": sync_time})

        return StoreScrapedResponse(
            restaurants_processed=restaurants_processed,
            menus_processed=menus_processed,
        )
