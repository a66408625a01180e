from __future__ import annotations

import logging

import httpx

from ..config import DEFAULT_APP_CONFIG, AppConfig
from ..errors import UpstreamUnavailable
from .entitlements import CheckResult, Entitlements

logger = logging.getLogger(__name__)


class AutumnEntitlements(Entitlements):
    """Entitlement checks against the hosted Autumn billing API."""

    def __init__(
        self,
        config: AppConfig = DEFAULT_APP_CONFIG,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=config.autumn_base_url,
            timeout=config.upstream_timeout,
            headers={"Authorization": f"Bearer {config.autumn_secret_key}"},
            transport=transport,
        )

    def check(self, customer_id: str | None, feature_id: str) -> CheckResult:
        if customer_id is None:
            return CheckResult(allowed=False, feature_id=feature_id)

        try:
            response = self._client.post(
                "/check",
                json={"customer_id": customer_id, "feature_id": feature_id},
            )
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable("Billing service timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Billing service request failed: {exc}") from exc

        if response.status_code >= 500:
            raise UpstreamUnavailable(f"Billing service returned {response.status_code}")
        if response.status_code >= 400:
            # Unknown customer or feature: treat as not entitled.
            logger.info(
                "Billing check for %s/%s returned %s",
                customer_id, feature_id, response.status_code,
            )
            return CheckResult(allowed=False, feature_id=feature_id, customer_id=customer_id)

        try:
            allowed = bool(response.json().get("allowed", False))
        except ValueError as exc:
            raise UpstreamUnavailable("Billing service returned invalid JSON") from exc

        return CheckResult(allowed=allowed, feature_id=feature_id, customer_id=customer_id)

    def close(self) -> None:
        self._client.close()
