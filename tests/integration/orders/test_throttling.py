"""Integration tests for throttling on the orders API."""

from __future__ import annotations

import pytest
from django.core.cache import cache
from rest_framework.throttling import ScopedRateThrottle

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def tight_rates(monkeypatch):
    monkeypatch.setattr(
        ScopedRateThrottle,
        "THROTTLE_RATES",
        {"order_creation": "3/minute", "order_listing": "100/minute"},
    )
    cache.clear()
    yield
    cache.clear()


def test_order_creation_is_throttled(tight_rates, user_client, product):
    payload = {"items": [{"product_id": str(product.id), "quantity": 1}]}

    for _ in range(3):
        response = user_client.post(URL, payload, format="json")
        assert response.status_code == 201

    response = user_client.post(URL, payload, format="json")
    assert response.status_code == 429


def test_order_listing_has_higher_limit(tight_rates, user_client):
    for _ in range(5):
        response = user_client.get(URL)
        assert response.status_code == 200
