from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from ..auth.users import get_plan

# ---------------------------------------------------------------------------
# Feature definitions
# ---------------------------------------------------------------------------

FEATURES: dict[str, dict] = {
    "advanced-filters": {
        "name": "Advanced Filters",
        "description": "Combine more than one price or category filter on the map",
        "plans": {"premium"},
    },
}


@dataclass(frozen=True)
class CheckResult:
    allowed: bool
    feature_id: str
    customer_id: str | None = None


class Entitlements(ABC):
    @abstractmethod
    def check(self, customer_id: str | None, feature_id: str) -> CheckResult:
        """Return whether *customer_id* may use *feature_id*."""


class PlanEntitlements(Entitlements):
    """Local entitlement check: a feature is allowed when the customer's plan
    is one of the plans listed for it in ``FEATURES``."""

    def __init__(
        self,
        plan_lookup: Callable[[str], str | None] = get_plan,
        features: dict[str, dict] | None = None,
    ) -> None:
        self._plan_lookup = plan_lookup
        self._features = features if features is not None else FEATURES

    def check(self, customer_id: str | None, feature_id: str) -> CheckResult:
        feature = self._features.get(feature_id)
        if customer_id is None or feature is None:
            return CheckResult(allowed=False, feature_id=feature_id, customer_id=customer_id)
        plan = self._plan_lookup(customer_id)
        return CheckResult(
            allowed=plan in feature["plans"],
            feature_id=feature_id,
            customer_id=customer_id,
        )
