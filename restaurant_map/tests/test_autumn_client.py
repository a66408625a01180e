from __future__ import annotations

import json

import httpx
import pytest

from restaurant_map.billing.autumn_client import AutumnEntitlements
from restaurant_map.config import AppConfig
from restaurant_map.errors import UpstreamUnavailable

CONFIG = AppConfig(autumn_secret_key="am_sk_test", autumn_base_url="https://billing.test/v1")


def _client(handler) -> AutumnEntitlements:
    return AutumnEntitlements(CONFIG, transport=httpx.MockTransport(handler))


def test_check_allowed():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"allowed": True})

    result = _client(handler).check("cust_1", "advanced-filters")

    assert result.allowed is True
    assert seen["url"] == "https://billing.test/v1/check"
    assert seen["auth"] == "Bearer am_sk_test"
    assert seen["body"] == {"customer_id": "cust_1", "feature_id": "advanced-filters"}


def test_check_denied():
    result = _client(lambda r: httpx.Response(200, json={"allowed": False})).check(
        "cust_1", "advanced-filters",
    )
    assert result.allowed is False


def test_missing_allowed_field_denies():
    result = _client(lambda r: httpx.Response(200, json={})).check("cust_1", "advanced-filters")
    assert result.allowed is False


def test_client_error_denies():
    result = _client(lambda r: httpx.Response(404, json={"message": "no customer"})).check(
        "cust_1", "advanced-filters",
    )
    assert result.allowed is False


def test_anonymous_never_calls_billing():
    def handler(request):
        raise AssertionError("should not be called")

    assert _client(handler).check(None, "advanced-filters").allowed is False


def test_server_error_is_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable):
        _client(lambda r: httpx.Response(503)).check("cust_1", "advanced-filters")


def test_timeout_is_upstream_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailable):
        _client(handler).check("cust_1", "advanced-filters")


def test_bad_json_is_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable):
        _client(lambda r: httpx.Response(200, content=b"not json")).check(
            "cust_1", "advanced-filters",
        )
