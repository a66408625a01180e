from __future__ import annotations

import pytest

from restaurant_map.analytics.store import clear_events
from restaurant_map.restaurants.service import set_entitlements
from restaurant_map.store.data_store import reset_state


@pytest.fixture(autouse=True)
def _fresh_state():
    """Every test starts from an empty store and index."""
    reset_state(seed=False)
    clear_events()
    set_entitlements(None)
    yield
    set_entitlements(None)
