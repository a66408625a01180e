from __future__ import annotations

import time
from datetime import datetime, timezone

from ..errors import NotFound
from ..restaurants.models import MealType, Restaurant
from ..store.document_store import DocumentStore
from .models import Event, EventCreate, EventWithCounts, Menu


def upsert_menu(
    store: DocumentStore,
    restaurant_id: str,
    event_id: str,
    meal: MealType | str,
    price: float,
    url: str | None = None,
    sync_time: float | None = None,
) -> tuple[str, bool]:
    """Insert or update the single menu for (restaurant, event, meal).

    Returns ``(menu_id, created)``.
    """
    meal = MealType(meal).value
    sync_time = sync_time if sync_time is not None else time.time()

    for menu in store.query(
        "menus", "by_restaurant_and_event", restaurant=restaurant_id, event=event_id,
    ):
        if menu["meal"] == meal:
            store.patch("menus", menu["id"], {
                "price": price,
                "url": url or menu.get("url"),
                "sync_time": sync_time,
            })
            return menu["id"], False

    menu_id = store.insert("menus", {
        "restaurant": restaurant_id,
        "event": event_id,
        "meal": meal,
        "price": price,
        "url": url,
        "sync_time": sync_time,
    })
    return menu_id, True


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class EventService:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _with_counts(self, doc: dict) -> EventWithCounts:
        menus = self.store.query("menus", "by_event", event=doc["id"])
        return EventWithCounts(
            **doc,
            menu_count=len(menus),
            restaurant_count=len({m["restaurant"] for m in menus}),
        )

    def list_active_events(self, now: str | None = None) -> list[EventWithCounts]:
        """Current and upcoming events, earliest first."""
        now = now or _today()
        active = [
            self._with_counts(doc)
            for doc in self.store.scan("events")
            if doc["end_date"] >= now
        ]
        return sorted(active, key=lambda e: e.start_date)

    def get_event(self, event_id: str) -> Event | None:
        doc = self.store.get("events", event_id)
        return Event(**doc) if doc is not None else None

    def get_event_by_name(self, name: str) -> EventWithCounts | None:
        doc = self.store.first("events", "by_name", name=name)
        return self._with_counts(doc) if doc is not None else None

    def get_restaurants_for_event(self, name: str) -> list[Restaurant]:
        event = self.store.first("events", "by_name", name=name)
        if event is None:
            return []
        menus = self.store.query("menus", "by_event", event=event["id"])
        restaurant_ids = list(dict.fromkeys(m["restaurant"] for m in menus))
        docs = self.store.get_many("restaurants", restaurant_ids)
        return [Restaurant(**docs[rid]) for rid in restaurant_ids if rid in docs]

    def get_menus_for_event(self, event_id: str) -> list[Menu]:
        return [Menu(**m) for m in self.store.query("menus", "by_event", event=event_id)]

    def get_menus_for_restaurant(self, restaurant_id: str) -> list[Menu]:
        return [
            Menu(**m)
            for m in self.store.query("menus", "by_restaurant", restaurant=restaurant_id)
        ]

    def add_event(self, data: EventCreate) -> str:
        record = data.model_dump(exclude_none=True)
        record["sync_time"] = time.time()
        return self.store.insert("events", record)

    def upsert_menu(
        self,
        restaurant_id: str,
        event_id: str,
        meal: MealType,
        price: float,
        url: str | None = None,
    ) -> tuple[str, bool]:
        if self.store.get("restaurants", restaurant_id) is None:
            raise NotFound("Restaurant", restaurant_id)
        if self.store.get("events", event_id) is None:
            raise NotFound("Event", event_id)
        result = upsert_menu(self.store, restaurant_id, event_id, meal, price, url)
        # Meal availability and price filters read the restaurant's own price.
        self.store.patch("restaurants", restaurant_id, {f"{MealType(meal).value}_price": price})
        return result
