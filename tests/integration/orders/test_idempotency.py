"""Integration tests for the Idempotency-Key header on order creation."""

from __future__ import annotations

import pytest

from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def test_repeated_key_returns_same_order(admin_client, product):
    payload = {"items": [{"product_id": str(product.id), "quantity": 2}]}

    first = admin_client.post(
        URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="checkout-42"
    )
    second = admin_client.post(
        URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="checkout-42"
    )

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert Order.objects.count() == 1
    assert Product.objects.get(id=product.id).stock_quantity == 8


def test_different_keys_create_distinct_orders(user_client, product):
    payload = {"items": [{"product_id": str(product.id), "quantity": 1}]}

    user_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="a")
    user_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="b")

    assert Order.objects.count() == 2


def test_without_key_every_request_creates(user_client, product):
    payload = {"items": [{"product_id": str(product.id), "quantity": 1}]}

    user_client.post(URL, payload, format="json")
    user_client.post(URL, payload, format="json")

    assert Order.objects.filter(idempotency_key__isnull=True).count() == 2


def test_key_owned_by_another_user_is_rejected(user_client, other_client, product):
    payload = {
        "items": [{"product_id": str(product.id), "quantity": 1}],
        "shipping_address": "1 Private Lane",
    }
    first = user_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="k-1")

    response = other_client.post(
        URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="k-1"
    )

    assert first.status_code == 201
    assert response.status_code == 409
    body = response.json()
    assert "id" not in body
    assert "1 Private Lane" not in str(body)
    assert "shopper@example.com" not in str(body)
    assert Order.objects.count() == 1


def test_owner_can_repeat_own_key(user_client, product):
    payload = {"items": [{"product_id": str(product.id), "quantity": 1}]}

    first = user_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="k-2")
    second = user_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="k-2")

    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
