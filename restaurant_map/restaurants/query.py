from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ..config import DEFAULT_APP_CONFIG, AppConfig
from ..errors import RestaurantMapError, UpstreamUnavailable
from ..geo.models import Point, Rectangle
from ..geo.spatial_index import SpatialIndex
from ..store.document_store import DocumentStore
from .filters import FilterSpec, matches
from .models import Restaurant

T = TypeVar("T")


def _upstream(what: str, call: Callable[[], T]) -> T:
    """Run a collaborator call, surfacing foreign failures as ``UpstreamUnavailable``."""
    try:
        return call()
    except RestaurantMapError:
        raise
    except Exception as exc:
        raise UpstreamUnavailable(f"{what} failed: {exc}") from exc


@dataclass
class BoundedQueryResult:
    results: list[Restaurant] = field(default_factory=list)
    next_cursor: str | None = None
    candidates: int = 0


class BoundedQueryOrchestrator:
    def __init__(
        self,
        store: DocumentStore,
        index: SpatialIndex,
        config: AppConfig = DEFAULT_APP_CONFIG,
    ) -> None:
        self.store = store
        self.index = index
        self.config = config

    def _clamp_limit(self, limit: int | None, default: int) -> int:
        if limit is None:
            return default
        return min(limit, self.config.max_query_limit)

    def execute(
        self,
        rectangle: Rectangle,
        limit: int | None,
        cursor: str | None,
        spec: FilterSpec,
    ) -> BoundedQueryResult:
        """Return one index page of restaurants in *rectangle* matching *spec*.

        Paging follows the spatial index, so a page may hold fewer than
        ``limit`` results (even none) while ``next_cursor`` is still set.
        """
        rectangle.check()
        page_size = self._clamp_limit(limit, self.config.default_query_limit)
        page = _upstream("Spatial index query", lambda: self.index.query(rectangle, page_size, cursor))

        keys = [key for key, _ in page.results]
        if not keys:
            return BoundedQueryResult(results=[], next_cursor=page.next_cursor)

        docs = _upstream("Restaurant fetch", lambda: self.store.get_many("restaurants", keys))

        results: list[Restaurant] = []
        for key in keys:
            doc = docs.get(key)
            if doc is None:
                # Deleted since it was indexed.
                continue
            restaurant = Restaurant(**doc)
            if matches(restaurant, spec):
                results.append(restaurant)

        return BoundedQueryResult(
            results=results,
            next_cursor=page.next_cursor,
            candidates=len(keys),
        )

    def nearest(
        self,
        point: Point,
        max_results: int | None = None,
        max_distance_meters: float | None = None,
    ) -> list[tuple[Restaurant, float]]:
        point.check()
        count = self._clamp_limit(max_results, self.config.default_nearest_results)
        hits = _upstream(
            "Nearest query",
            lambda: self.index.query_nearest(point, count, max_distance_meters),
        )
        if not hits:
            return []

        docs = _upstream(
            "Restaurant fetch",
            lambda: self.store.get_many("restaurants", [h.key for h in hits]),
        )
        return [
            (Restaurant(**docs[h.key]), h.distance_meters)
            for h in hits
            if h.key in docs
        ]
