from __future__ import annotations

import logging

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import get_current_user_id, require_admin, require_user
from .auth.users import authenticate, get_user, set_plan
from .config import DEFAULT_APP_CONFIG
from .errors import (
    InvalidBounds,
    InvalidCursor,
    NotFound,
    PremiumRequired,
    UpstreamUnavailable,
)
from .events.models import (
    Event,
    EventCreate,
    EventWithCounts,
    Menu,
    MenuUpsert,
    MenuUpsertResponse,
)
from .restaurants.filters import FilterSpec
from .restaurants.models import (
    BoundsQueryRequest,
    BoundsQueryResponse,
    EnrichmentData,
    LoginRequest,
    NearestRequest,
    NearestResponse,
    PlanUpdate,
    PriceFilters,
    Restaurant,
    RestaurantCreate,
    RestaurantPatch,
    StoreScrapedRequest,
    StoreScrapedResponse,
    SyncAllResponse,
    SyncOneResponse,
)
from .restaurants.service import (
    get_event_service,
    get_repository,
    query_nearest_restaurants,
    query_restaurants_in_bounds_with_auth,
    sync_all_restaurants_to_index,
    sync_restaurant_to_index,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Restaurant Map API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(NotFound)
def _not_found(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidBounds)
@app.exception_handler(InvalidCursor)
def _invalid_request(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(PremiumRequired)
def _premium_required(request: Request, exc: PremiumRequired) -> JSONResponse:
    return JSONResponse(
        status_code=402,
        content={"detail": str(exc), "feature": exc.feature_id},
    )


@app.exception_handler(UpstreamUnavailable)
def _upstream_unavailable(request: Request, exc: UpstreamUnavailable) -> JSONResponse:
    logger.warning("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "categories": get_repository().list_categories(),
        "active_events": [e.name for e in get_event_service().list_active_events()],
    }


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return get_user(user["username"]) or user


# ── Map queries ──────────────────────────────────────────────────────────


@app.post("/restaurants/in-bounds", response_model=BoundsQueryResponse)
def restaurants_in_bounds(
    body: BoundsQueryRequest,
    customer_id: str | None = Depends(get_current_user_id),
) -> BoundsQueryResponse:
    return query_restaurants_in_bounds_with_auth(body, customer_id)


@app.post("/restaurants/nearest", response_model=NearestResponse)
def restaurants_nearest(body: NearestRequest) -> NearestResponse:
    return query_nearest_restaurants(body)


# ── Restaurant catalogue ─────────────────────────────────────────────────


@app.get("/restaurants", response_model=list[Restaurant])
def list_restaurants() -> list[Restaurant]:
    return get_repository().list_restaurants()


@app.get("/categories")
def list_categories() -> list[str]:
    return get_repository().list_categories()


@app.post("/restaurants/price-filter", response_model=list[Restaurant])
def restaurants_price_filter(body: PriceFilters) -> list[Restaurant]:
    return get_repository().list_with_price_filter(FilterSpec.from_request(body))


@app.get("/restaurants/{restaurant_id}", response_model=Restaurant | None)
def get_restaurant(restaurant_id: str) -> Restaurant | None:
    return get_repository().get_restaurant(restaurant_id)


@app.get("/restaurants/{restaurant_id}/menus", response_model=list[Menu])
def restaurant_menus(restaurant_id: str) -> list[Menu]:
    return get_event_service().get_menus_for_restaurant(restaurant_id)


@app.post("/restaurants", status_code=201)
def add_restaurant(
    body: RestaurantCreate,
    background_tasks: BackgroundTasks,
    user: dict = Depends(require_user),
) -> dict:
    restaurant_id = get_repository().add_restaurant(body, background_tasks)
    return {"id": restaurant_id}


@app.patch("/restaurants/{restaurant_id}", response_model=Restaurant)
def patch_restaurant(
    restaurant_id: str,
    body: RestaurantPatch,
    background_tasks: BackgroundTasks,
    user: dict = Depends(require_user),
) -> Restaurant:
    fields = body.model_dump(exclude_unset=True)
    return get_repository().patch_restaurant(restaurant_id, fields, background_tasks)


@app.post("/restaurants/{restaurant_id}/enrichment")
def enrich_restaurant(
    restaurant_id: str,
    body: EnrichmentData,
    background_tasks: BackgroundTasks,
    user: dict = Depends(require_admin),
) -> dict:
    updates = get_repository().update_from_enrichment(restaurant_id, body, background_tasks)
    return {"updated": sorted(updates)}


# ── Events and menus ─────────────────────────────────────────────────────


@app.get("/events", response_model=list[EventWithCounts])
def list_events() -> list[EventWithCounts]:
    return get_event_service().list_active_events()


@app.get("/events/by-name/{name}", response_model=EventWithCounts | None)
def event_by_name(name: str) -> EventWithCounts | None:
    return get_event_service().get_event_by_name(name)


@app.get("/events/by-name/{name}/restaurants", response_model=list[Restaurant])
def event_restaurants(name: str) -> list[Restaurant]:
    return get_event_service().get_restaurants_for_event(name)


@app.get("/events/{event_id}/menus", response_model=list[Menu])
def event_menus(event_id: str) -> list[Menu]:
    return get_event_service().get_menus_for_event(event_id)


@app.post("/events", status_code=201)
def add_event(body: EventCreate, user: dict = Depends(require_admin)) -> dict:
    return {"id": get_event_service().add_event(body)}


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    event = get_event_service().get_event(event_id)
    if event is None:
        raise NotFound("Event", event_id)
    return event


@app.put("/menus", response_model=MenuUpsertResponse)
def upsert_menu(body: MenuUpsert, user: dict = Depends(require_admin)) -> MenuUpsertResponse:
    menu_id, created = get_event_service().upsert_menu(
        body.restaurant_id, body.event_id, body.meal, body.price, body.url,
    )
    return MenuUpsertResponse(menu_id=menu_id, created=created)


@app.post("/events/{event_id}/scraped-restaurants", response_model=StoreScrapedResponse)
def store_scraped(
    event_id: str,
    body: StoreScrapedRequest,
    background_tasks: BackgroundTasks,
    user: dict = Depends(require_admin),
) -> StoreScrapedResponse:
    return get_repository().store_scraped_restaurants(event_id, body.restaurants, background_tasks)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.post("/admin/index/sync/{restaurant_id}", response_model=SyncOneResponse)
def admin_sync_one(restaurant_id: str, user: dict = Depends(require_admin)) -> SyncOneResponse:
    return sync_restaurant_to_index(restaurant_id)


@app.post("/admin/index/sync-all", response_model=SyncAllResponse)
def admin_sync_all(user: dict = Depends(require_admin)) -> SyncAllResponse:
    return sync_all_restaurants_to_index()


@app.put("/admin/users/{username}/plan")
def admin_set_plan(username: str, body: PlanUpdate, user: dict = Depends(require_admin)) -> dict:
    if get_user(username) is None:
        raise NotFound("User", username)
    set_plan(username, body.plan)
    return get_user(username)


@app.get("/analytics")
def analytics(since: float | None = None, user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events(since=since))
