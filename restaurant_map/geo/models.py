from __future__ import annotations

import math
from dataclasses import dataclass, field

from pydantic import BaseModel

from ..errors import InvalidBounds


def _check_latitude(value: float, name: str = "latitude") -> None:
    if not math.isfinite(value) or not -90.0 <= value <= 90.0:
        raise InvalidBounds(f"{name} must be a finite value in [-90, 90], got {value!r}")


def _check_longitude(value: float, name: str = "longitude") -> None:
    if not math.isfinite(value) or not -180.0 <= value <= 180.0:
        raise InvalidBounds(f"{name} must be a finite value in [-180, 180], got {value!r}")


class Point(BaseModel):
    latitude: float
    longitude: float

    def check(self) -> "Point":
        """Raise ``InvalidBounds`` unless both coordinates are in range."""
        _check_latitude(self.latitude)
        _check_longitude(self.longitude)
        return self


class Rectangle(BaseModel):
    """Axis-aligned lat/lon box. ``west > east`` is not treated as wrapping."""

    north: float
    south: float
    east: float
    west: float

    def check(self) -> "Rectangle":
        _check_latitude(self.north, "north")
        _check_latitude(self.south, "south")
        _check_longitude(self.east, "east")
        _check_longitude(self.west, "west")
        if self.south > self.north:
            raise InvalidBounds(f"south ({self.south}) is above north ({self.north})")
        return self

    def contains(self, point: Point) -> bool:
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )


@dataclass(frozen=True)
class IndexEntry:
    key: str
    point: Point
    categories: tuple[str, ...] = ()
    sort_key: float = 0.0


@dataclass
class IndexPage:
    results: list[tuple[str, Point]] = field(default_factory=list)
    next_cursor: str | None = None


@dataclass(frozen=True)
class NearestHit:
    key: str
    point: Point
    distance_meters: float
