from __future__ import annotations

import logging

from ..billing.entitlements import Entitlements
from ..errors import PremiumRequired, RestaurantMapError, UpstreamUnavailable
from .filters import FilterSpec, filter_dimension_count

logger = logging.getLogger(__name__)

FREE_FILTER_DIMENSIONS = 1


class EntitlementGate:
    """Requires a premium entitlement once more than one filter dimension is
    requested. Denies anonymous callers and any non-explicit allow."""

    def __init__(self, entitlements: Entitlements, feature_id: str) -> None:
        self.entitlements = entitlements
        self.feature_id = feature_id

    def requires_premium(self, spec: FilterSpec) -> bool:
        return filter_dimension_count(spec) > FREE_FILTER_DIMENSIONS

    def check(self, spec: FilterSpec, customer_id: str | None) -> None:
        if not self.requires_premium(spec):
            return

        if customer_id is None:
            logger.info("Rejected anonymous query using %d filters", filter_dimension_count(spec))
            raise PremiumRequired(self.feature_id)

        try:
            result = self.entitlements.check(customer_id, self.feature_id)
        except RestaurantMapError:
            raise
        except Exception as exc:
            raise UpstreamUnavailable("Entitlement check failed") from exc

        if result.allowed is not True:
            logger.info("Rejected %s: no %s entitlement", customer_id, self.feature_id)
            raise PremiumRequired(self.feature_id)
