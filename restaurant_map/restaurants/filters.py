"""
Attribute filters applied to restaurants after the spatial lookup.

Price ranges are disjunctive: a restaurant passes the price filter when it
satisfies at least one active meal dimension. Categories are conjunctive with
the price result: when requested, the restaurant must share at least one
category with the request.

Malformed ranges (min above max) simply match nothing for that meal.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import MealType, PriceFilters, Restaurant


@dataclass(frozen=True)
class PriceRange:
    meal: MealType
    min_price: float | None = None
    max_price: float | None = None

    @property
    def active(self) -> bool:
        return self.min_price is not None or self.max_price is not None

    def matches(self, price: float | None) -> bool:
        if price is None:
            return False
        if self.min_price is not None and price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False
        return True


@dataclass(frozen=True)
class FilterSpec:
    price_ranges: tuple[PriceRange, ...] = ()
    categories: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_request(
        cls,
        prices: PriceFilters | None = None,
        categories: Iterable[str] | None = None,
    ) -> "FilterSpec":
        ranges: list[PriceRange] = []
        if prices is not None:
            for meal in MealType:
                r = PriceRange(
                    meal=meal,
                    min_price=getattr(prices, f"min_{meal.value}_price"),
                    max_price=getattr(prices, f"max_{meal.value}_price"),
                )
                if r.active:
                    ranges.append(r)
        return cls(price_ranges=tuple(ranges), categories=frozenset(categories or ()))

    @property
    def active_price_ranges(self) -> list[PriceRange]:
        return [r for r in self.price_ranges if r.active]


def matches_price(restaurant: Restaurant, spec: FilterSpec) -> bool:
    active = spec.active_price_ranges
    if not active:
        return True
    return any(r.matches(restaurant.price_for(r.meal)) for r in active)


def matches_categories(restaurant: Restaurant, spec: FilterSpec) -> bool:
    if not spec.categories:
        return True
    return not spec.categories.isdisjoint(restaurant.categories)


def matches(restaurant: Restaurant, spec: FilterSpec) -> bool:
    return matches_price(restaurant, spec) and matches_categories(restaurant, spec)


def filter_dimension_count(spec: FilterSpec) -> int:
    """Active price dimensions, plus one for the category filter as a whole."""
    return len(spec.active_price_ranges) + (1 if spec.categories else 0)
