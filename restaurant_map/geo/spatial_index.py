from __future__ import annotations

import base64
import binascii
import json
import math
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable

from ..errors import InvalidBounds, InvalidCursor
from .distance import haversine_many
from .models import IndexEntry, IndexPage, NearestHit, Point, Rectangle

DEFAULT_QUERY_LIMIT = 100


def encode_cursor(sort_key: float, key: str) -> str:
    raw = json.dumps([sort_key, key], separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[float, str]:
    try:
        sort_key, key = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        return float(sort_key), str(key)
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError) as exc:
        raise InvalidCursor(f"Malformed cursor: {cursor!r}") from exc


def _order(entry: IndexEntry) -> tuple[float, str]:
    # Sort key descending, then key ascending so ties page deterministically.
    return (-entry.sort_key, entry.key)


class SpatialIndex(ABC):
    """Point index keyed by restaurant id, carrying a category payload."""

    @abstractmethod
    def insert(
        self,
        key: str,
        point: Point,
        categories: Iterable[str] = (),
        sort_key: float = 0.0,
    ) -> None:
        """Insert or fully replace the entry for *key*."""

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Delete the entry for *key*. Returns ``False`` when it was absent."""

    @abstractmethod
    def query(
        self,
        rectangle: Rectangle,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> IndexPage:
        """Return one page of entries inside *rectangle*."""

    @abstractmethod
    def query_nearest(
        self,
        point: Point,
        max_results: int,
        max_distance_meters: float | None = None,
    ) -> list[NearestHit]:
        """Return up to *max_results* entries nearest to *point*."""

    @abstractmethod
    def get(self, key: str) -> IndexEntry | None:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """Every key currently indexed."""


class InMemorySpatialIndex(SpatialIndex):
    def __init__(self) -> None:
        self._entries: dict[str, IndexEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def insert(
        self,
        key: str,
        point: Point,
        categories: Iterable[str] = (),
        sort_key: float = 0.0,
    ) -> None:
        point.check()
        # Cursor ordering needs a total order over sort keys.
        if not math.isfinite(sort_key):
            raise InvalidBounds(f"sort key must be finite, got {sort_key!r}")
        entry = IndexEntry(
            key=key,
            point=Point(latitude=point.latitude, longitude=point.longitude),
            categories=tuple(categories),
            sort_key=float(sort_key),
        )
        with self._lock:
            self._entries[key] = entry

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def get(self, key: str) -> IndexEntry | None:
        return self._entries.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def snapshot(self) -> dict[str, IndexEntry]:
        with self._lock:
            return dict(self._entries)

    def query(
        self,
        rectangle: Rectangle,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> IndexPage:
        rectangle.check()
        if limit is None:
            limit = DEFAULT_QUERY_LIMIT
        if limit < 1:
            raise InvalidBounds(f"limit must be positive, got {limit}")

        with self._lock:
            matches = [e for e in self._entries.values() if rectangle.contains(e.point)]
        matches.sort(key=_order)

        if cursor:
            after_sort_key, after_key = decode_cursor(cursor)
            boundary = (-after_sort_key, after_key)
            matches = [e for e in matches if _order(e) > boundary]

        page = matches[:limit]
        next_cursor = None
        if len(matches) > limit:
            last = page[-1]
            next_cursor = encode_cursor(last.sort_key, last.key)

        return IndexPage(
            results=[(e.key, e.point) for e in page],
            next_cursor=next_cursor,
        )

    def query_nearest(
        self,
        point: Point,
        max_results: int,
        max_distance_meters: float | None = None,
    ) -> list[NearestHit]:
        point.check()
        if max_results < 1:
            return []

        with self._lock:
            entries = list(self._entries.values())
        if not entries:
            return []

        distances = haversine_many(point, [e.point for e in entries])
        hits = [
            NearestHit(key=e.key, point=e.point, distance_meters=float(d))
            for e, d in zip(entries, distances)
            if max_distance_meters is None or d <= max_distance_meters
        ]
        hits.sort(key=lambda h: (h.distance_meters, h.key))
        return hits[:max_results]
