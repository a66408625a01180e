from __future__ import annotations

from pydantic import BaseModel, Field

from ..restaurants.models import MealType

# ISO-8601 date or datetime; lexicographic order must match time order.
_ISO_DATE = r"^\d{4}-\d{2}-\d{2}"


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1)
    start_date: str = Field(..., pattern=_ISO_DATE)
    end_date: str = Field(..., pattern=_ISO_DATE)
    latitude: float
    longitude: float
    website_url: str | None = None


class Event(EventCreate):
    id: str
    sync_time: float | None = None
    creation_time: float | None = None


class EventWithCounts(Event):
    menu_count: int
    restaurant_count: int


class Menu(BaseModel):
    id: str
    restaurant: str
    event: str
    meal: MealType
    price: float
    url: str | None = None
    sync_time: float | None = None


class MenuUpsert(BaseModel):
    restaurant_id: str
    event_id: str
    meal: MealType
    price: float = Field(..., gt=0)
    url: str | None = None


class MenuUpsertResponse(BaseModel):
    menu_id: str
    created: bool
