"""
Restaurant map query service.

Responsibilities:
- Run bounded map queries, always behind the entitlement gate.
- Run nearest-neighbour queries.
- Expose single and bulk spatial index resync.
- Record query analytics.
"""
from __future__ import annotations

import time

from ..analytics.store import record_event
from ..billing.autumn_client import AutumnEntitlements
from ..billing.entitlements import Entitlements, PlanEntitlements
from ..config import DEFAULT_APP_CONFIG
from ..errors import PremiumRequired
from ..events.service import EventService
from ..store.data_store import get_index, get_store
from .filters import FilterSpec, filter_dimension_count
from .gate import EntitlementGate
from .models import (
    BoundsQueryRequest,
    BoundsQueryResponse,
    NearestItem,
    NearestRequest,
    NearestResponse,
    SyncAllResponse,
    SyncOneResponse,
)
from .query import BoundedQueryOrchestrator
from .repository import RestaurantRepository
from .sync import IndexSyncReconciler

_entitlements: Entitlements | None = None


def get_entitlements() -> Entitlements:
    global _entitlements
    if _entitlements is None:
        if DEFAULT_APP_CONFIG.billing_backend == "autumn":
            _entitlements = AutumnEntitlements(DEFAULT_APP_CONFIG)
        else:
            _entitlements = PlanEntitlements()
    return _entitlements


def set_entitlements(entitlements: Entitlements | None) -> None:
    """Swap the billing collaborator; ``None`` restores the configured one."""
    global _entitlements
    _entitlements = entitlements


def get_reconciler() -> IndexSyncReconciler:
    return IndexSyncReconciler(get_store(), get_index())


def get_repository() -> RestaurantRepository:
    return RestaurantRepository(get_store(), get_reconciler())


def get_event_service() -> EventService:
    return EventService(get_store())


def _gate() -> EntitlementGate:
    return EntitlementGate(get_entitlements(), DEFAULT_APP_CONFIG.advanced_filters_feature)


def _orchestrator() -> BoundedQueryOrchestrator:
    return BoundedQueryOrchestrator(get_store(), get_index(), DEFAULT_APP_CONFIG)


# ── Bounded queries ──────────────────────────────────────────────────────


def query_restaurants_in_bounds(
    request: BoundsQueryRequest,
    customer_id: str | None = None,
) -> BoundsQueryResponse:
    """Bounded, filtered page of restaurants.

    Queries with more than one filter dimension need the advanced-filters
    entitlement; anonymous callers are limited to a single dimension.
    """
    start_time = time.time()
    spec = FilterSpec.from_request(request, request.categories)
    event = {
        "bounds": request.bounds.model_dump(),
        "categories": sorted(spec.categories),
        "price_dimensions": [r.meal.value for r in spec.active_price_ranges],
        "filter_dimensions": filter_dimension_count(spec),
        "authenticated": customer_id is not None,
    }

    try:
        _gate().check(spec, customer_id)
    except PremiumRequired:
        record_event("bounds_query", {**event, "premium_required": True})
        raise

    result = _orchestrator().execute(request.bounds, request.limit, request.cursor, spec)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("bounds_query", {
        **event,
        "premium_required": False,
        "candidates": result.candidates,
        "results_returned": len(result.results),
        "has_next_page": result.next_cursor is not None,
        "response_time_ms": elapsed_ms,
    })

    return BoundsQueryResponse(results=result.results, next_cursor=result.next_cursor)


def query_restaurants_in_bounds_with_auth(
    request: BoundsQueryRequest,
    customer_id: str | None,
) -> BoundsQueryResponse:
    return query_restaurants_in_bounds(request, customer_id=customer_id)


# ── Nearest ──────────────────────────────────────────────────────────────


def query_nearest_restaurants(request: NearestRequest) -> NearestResponse:
    hits = _orchestrator().nearest(
        request.point, request.max_results, request.max_distance_meters,
    )
    return NearestResponse(results=[
        NearestItem(restaurant=restaurant, distance_meters=round(distance, 1))
        for restaurant, distance in hits
    ])


# ── Index sync ───────────────────────────────────────────────────────────


def sync_restaurant_to_index(restaurant_id: str) -> SyncOneResponse:
    indexed = get_reconciler().sync_one(restaurant_id)
    return SyncOneResponse(restaurant_id=restaurant_id, indexed=indexed)


def sync_all_restaurants_to_index() -> SyncAllResponse:
    return SyncAllResponse(synced=get_reconciler().sync_all())
