from __future__ import annotations


class RestaurantMapError(Exception):
    """Base class for errors raised by the restaurant map core."""


class NotFound(RestaurantMapError):
    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} {item_id!r} not found")
        self.kind = kind
        self.item_id = item_id


class InvalidBounds(RestaurantMapError):
    """Non-finite or out-of-range coordinates."""


class InvalidCursor(RestaurantMapError):
    """Pagination cursor that was not produced by the spatial index."""


class PremiumRequired(RestaurantMapError):
    def __init__(self, feature_id: str) -> None:
        super().__init__(
            "Premium access required to use multiple filters. Please upgrade to continue."
        )
        self.feature_id = feature_id


class UpstreamUnavailable(RestaurantMapError):
    """The document store, spatial index or billing service failed."""
