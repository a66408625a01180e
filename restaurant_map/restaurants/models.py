from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, FiniteFloat, computed_field

from ..geo.models import Point, Rectangle


class MealType(str, Enum):
    brunch = "brunch"
    lunch = "lunch"
    dinner = "dinner"


class RestaurantFields(BaseModel):
    key: str | None = Field(default=None, description="Ingestion dedupe key")
    rating: FiniteFloat | None = None
    latitude: FiniteFloat | None = None
    longitude: FiniteFloat | None = None
    address: str | None = None
    website_url: str | None = None
    yelp_url: str | None = None
    open_table_url: str | None = None
    categories: list[str] = Field(default_factory=list)
    brunch_price: FiniteFloat | None = None
    lunch_price: FiniteFloat | None = None
    dinner_price: FiniteFloat | None = None


class RestaurantCreate(RestaurantFields):
    name: str = Field(..., min_length=1)


class Restaurant(RestaurantFields):
    id: str
    name: str
    creation_time: FiniteFloat | None = None

    def price_for(self, meal: MealType) -> float | None:
        return getattr(self, f"{meal.value}_price")

    def point(self) -> Point | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Point(latitude=self.latitude, longitude=self.longitude)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def meals(self) -> list[MealType]:
        """Meals on offer, derived from which prices are present."""
        return [m for m in MealType if self.price_for(m) is not None]


class RestaurantPatch(BaseModel):
    """Manual edit. Fields sent as ``null`` are cleared."""

    name: str | None = Field(default=None, min_length=1)
    rating: FiniteFloat | None = None
    latitude: FiniteFloat | None = None
    longitude: FiniteFloat | None = None
    address: str | None = None
    website_url: str | None = None
    yelp_url: str | None = None
    open_table_url: str | None = None
    categories: list[str] | None = None
    brunch_price: FiniteFloat | None = None
    lunch_price: FiniteFloat | None = None
    dinner_price: FiniteFloat | None = None


class EnrichmentData(BaseModel):
    address: str | None = None
    open_table_url: str | None = None
    website_url: str | None = None
    yelp_url: str | None = None
    latitude: FiniteFloat | None = None
    longitude: FiniteFloat | None = None
    rating: FiniteFloat | None = None
    categories: list[str] | None = None


class ScrapedMenu(BaseModel):
    price: FiniteFloat | None = None
    meal: str | None = None
    url: str | None = None


class ScrapedRestaurant(BaseModel):
    key: str
    name: str = ""
    menus: list[ScrapedMenu] = Field(default_factory=list)
    website_url: str | None = None
    open_table_url: str | None = None
    yelp_url: str | None = None
    categories: list[str] | None = None
    address: str | None = None
    latitude: FiniteFloat | None = None
    longitude: FiniteFloat | None = None
    rating: FiniteFloat | None = None


class StoreScrapedRequest(BaseModel):
    restaurants: list[ScrapedRestaurant]


class StoreScrapedResponse(BaseModel):
    restaurants_processed: int
    menus_processed: int


# ── Filter / query requests ──────────────────────────────────────────────


class PriceFilters(BaseModel):
    min_brunch_price: FiniteFloat | None = None
    max_brunch_price: FiniteFloat | None = None
    min_lunch_price: FiniteFloat | None = None
    max_lunch_price: FiniteFloat | None = None
    min_dinner_price: FiniteFloat | None = None
    max_dinner_price: FiniteFloat | None = None


class BoundsQueryRequest(PriceFilters):
    bounds: Rectangle
    limit: int | None = Field(default=None, ge=1)
    cursor: str | None = None
    categories: list[str] | None = None


class BoundsQueryResponse(BaseModel):
    results: list[Restaurant]
    next_cursor: str | None = None


class NearestRequest(BaseModel):
    point: Point
    max_results: int | None = Field(default=None, ge=1)
    max_distance_meters: float | None = Field(default=None, gt=0)


class NearestItem(BaseModel):
    restaurant: Restaurant
    distance_meters: float


class NearestResponse(BaseModel):
    results: list[NearestItem]


class SyncOneResponse(BaseModel):
    restaurant_id: str
    indexed: bool


class SyncAllResponse(BaseModel):
    synced: int


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PlanUpdate(BaseModel):
    plan: Literal["free", "premium"]
