"""Integration tests for POST /api/v1/orders/."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _payload(*lines, **fields) -> dict:
    data = {
        "items": [
            {"product_id": str(product.id), "quantity": quantity}
            for product, quantity in lines
        ]
    }
    data.update(fields)
    return data


def test_user_creates_pending_order(user_client, product):
    response = user_client.post(URL, _payload((product, 2)), format="json")

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == OrderStatus.PENDING
    assert data["total_amount"] == "20.00"
    assert data["customer_email"] == "shopper@example.com"
    assert data["order_number"].startswith("ORD-")
    assert data["items"][0]["product_sku"] == "WIDGET-001"
    assert data["items"][0]["unit_price"] == "10.00"
    assert data["items"][0]["total_price"] == "20.00"
    assert [h["new_status"] for h in data["status_history"]] == ["Pending"]
    assert Product.objects.get(id=product.id).stock_quantity == 10


def test_admin_creates_processing_order(admin_client, product):
    response = admin_client.post(
        URL,
        _payload((product, 3), customer_name="Walk-in", customer_email="w@example.com"),
        format="json",
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == OrderStatus.PROCESSING
    assert data["customer_name"] == "Walk-in"
    assert Product.objects.get(id=product.id).stock_quantity == 7


def test_explicit_unit_price(user_client, product):
    payload = {
        "items": [
            {"product_id": str(product.id), "quantity": 2, "unit_price": "7.50"}
        ]
    }
    response = user_client.post(URL, payload, format="json")
    assert response.status_code == 201
    assert response.json()["total_amount"] == "15.00"


def test_order_date_can_be_supplied(user_client, product):
    response = user_client.post(
        URL,
        _payload((product, 1), order_date="2026-01-15T09:30:00Z"),
        format="json",
    )
    assert response.status_code == 201
    assert response.json()["order_date"].startswith("2026-01-15T09:30:00")


def test_admin_order_without_stock_conflicts(admin_client, make_product):
    empty = make_product(stock_quantity=0)
    response = admin_client.post(URL, _payload((empty, 1)), format="json")

    assert response.status_code == 409
    data = response.json()
    assert data["product_id"] == str(empty.id)
    assert data["requested"] == 1
    assert data["available"] == 0
    assert Order.objects.count() == 0


def test_empty_items_rejected(user_client):
    response = user_client.post(URL, {"items": []}, format="json")
    assert response.status_code == 400


def test_zero_quantity_rejected(user_client, product):
    response = user_client.post(URL, _payload((product, 0)), format="json")
    assert response.status_code == 400


def test_duplicate_products_rejected(user_client, product):
    response = user_client.post(
        URL, _payload((product, 1), (product, 2)), format="json"
    )
    assert response.status_code == 400
    assert "Duplicate product IDs" in response.json()["detail"]


def test_unknown_product_returns_404(user_client):
    payload = {"items": [{"product_id": str(uuid4()), "quantity": 1}]}
    response = user_client.post(URL, payload, format="json")
    assert response.status_code == 404


def test_anonymous_rejected(api_client, product):
    response = api_client.post(URL, _payload((product, 1)), format="json")
    assert response.status_code == 401
