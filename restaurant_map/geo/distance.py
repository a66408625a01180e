from __future__ import annotations

import numpy as np
from sklearn.metrics.pairwise import haversine_distances

from .models import Point

EARTH_RADIUS_METERS = 6_371_008.8


def _radians(points: list[Point]) -> np.ndarray:
    coords = np.array([[p.latitude, p.longitude] for p in points], dtype=float)
    return np.radians(coords.reshape(-1, 2))


def haversine_many(origin: Point, points: list[Point]) -> np.ndarray:
    """Great-circle distance in meters from *origin* to each of *points*."""
    if not points:
        return np.zeros(0)
    angles = haversine_distances(_radians([origin]), _radians(points))
    return angles.flatten() * EARTH_RADIUS_METERS


def haversine_meters(a: Point, b: Point) -> float:
    return float(haversine_many(a, [b])[0])
