from __future__ import annotations

import logging

from fastapi import BackgroundTasks

from ..errors import InvalidBounds, NotFound, RestaurantMapError
from ..geo.spatial_index import SpatialIndex
from ..store.document_store import DocumentStore
from .models import Restaurant

logger = logging.getLogger(__name__)


class IndexSyncReconciler:
    """Keeps the spatial index derived from the restaurant documents.

    A restaurant is indexed exactly when it has both coordinates.
    """

    def __init__(self, store: DocumentStore, index: SpatialIndex) -> None:
        self.store = store
        self.index = index

    def _apply(self, restaurant: Restaurant) -> bool:
        point = restaurant.point()
        if point is None:
            if self.index.remove(restaurant.id):
                logger.info("Evicted %s from spatial index (coordinates cleared)", restaurant.id)
            return False
        try:
            self.index.insert(
                restaurant.id,
                point,
                restaurant.categories,
                restaurant.rating or 0.0,
            )
        except InvalidBounds:
            logger.warning("Not indexing %s: invalid coordinates", restaurant.id, exc_info=True)
            self.index.remove(restaurant.id)
            return False
        return True

    def sync_one(self, restaurant_id: str) -> bool:
        """Upsert or evict one restaurant. Returns whether it is now indexed."""
        doc = self.store.get("restaurants", restaurant_id)
        if doc is None:
            raise NotFound("Restaurant", restaurant_id)
        return self._apply(Restaurant(**doc))

    def sync_all(self) -> int:
        """Re-derive every index entry. Safe to re-run after a partial run.

        Entries whose restaurant no longer exists are dropped.
        """
        synced = 0
        seen: set[str] = set()
        for doc in self.store.scan("restaurants"):
            seen.add(doc["id"])
            if self._apply(Restaurant(**doc)):
                synced += 1

        orphans = [key for key in self.index.keys() if key not in seen]
        for key in orphans:
            self.index.remove(key)
        if orphans:
            logger.info("Dropped %d orphaned index entries", len(orphans))

        logger.info("Synced %d restaurants to spatial index", synced)
        return synced

    def _sync_deferred(self, restaurant_id: str) -> None:
        try:
            self.sync_one(restaurant_id)
        except RestaurantMapError:
            logger.warning("Deferred index sync failed for %s", restaurant_id, exc_info=True)

    def schedule_sync(
        self,
        restaurant_id: str,
        background_tasks: BackgroundTasks | None = None,
    ) -> None:
        """Defer the sync to run after the response when *background_tasks*
        is given, otherwise sync inline."""
        if background_tasks is not None:
            background_tasks.add_task(self._sync_deferred, restaurant_id)
        else:
            self.sync_one(restaurant_id)
