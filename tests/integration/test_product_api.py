"""Integration tests for the products API."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.inventory.models import Outgoing
from modules.products.models import Product

pytestmark = pytest.mark.integration

URL = "/api/v1/products/"


def _product_payload(**overrides) -> dict:
    data = {
        "sku": "cable-01",
        "name": "USB Cable",
        "category": "Electronics",
        "stock_quantity": 25,
        "cost_price": "1.20",
        "selling_price": "3.50",
        "minimum_stock_level": 5,
    }
    data.update(overrides)
    return data


class TestProductCreate:
    def test_admin_creates_product(self, admin_client, supplier):
        response = admin_client.post(URL, _product_payload(), format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["sku"] == "CABLE-01"
        assert data["selling_price"] == "3.50"
        assert data["supplier"] == str(supplier.id)
        assert data["supplier_name"] == "Northwind Electronics"
        assert data["is_low_stock"] is False
        assert data["version"] == 0

    def test_user_cannot_create(self, user_client):
        response = user_client.post(URL, _product_payload(), format="json")
        assert response.status_code == 403

    def test_duplicate_sku(self, admin_client, product):
        response = admin_client.post(
            URL, _product_payload(sku="widget-001"), format="json"
        )
        assert response.status_code == 409

    def test_negative_price_rejected(self, admin_client):
        response = admin_client.post(
            URL, _product_payload(selling_price="-1"), format="json"
        )
        assert response.status_code == 400

    def test_unknown_supplier_rejected(self, admin_client):
        response = admin_client.post(
            URL, _product_payload(supplier_id=str(uuid4())), format="json"
        )
        assert response.status_code == 400


class TestProductRead:
    def test_user_can_list(self, user_client, product):
        response = user_client.get(URL)
        assert response.status_code == 200
        assert response.json()["results"][0]["sku"] == "WIDGET-001"

    def test_retrieve(self, user_client, product):
        response = user_client.get(f"{URL}{product.id}/")
        assert response.status_code == 200
        assert response.json()["name"] == "Widget"

    def test_retrieve_unknown(self, user_client):
        assert user_client.get(f"{URL}{uuid4()}/").status_code == 404

    def test_price_lookup(self, user_client, product):
        response = user_client.get(f"{URL}{product.id}/price/")
        assert response.status_code == 200
        assert response.json() == {
            "product_id": str(product.id),
            "price": "10.00",
            "stock": 10,
        }

    def test_price_lookup_unknown(self, user_client):
        assert user_client.get(f"{URL}{uuid4()}/price/").status_code == 404

    def test_low_stock_report(self, admin_client, make_product):
        low = make_product(stock_quantity=1, minimum_stock_level=3)
        make_product(stock_quantity=30, minimum_stock_level=3)

        response = admin_client.get(f"{URL}low-stock/")

        assert response.status_code == 200
        results = response.json()["results"]
        assert [p["id"] for p in results] == [str(low.id)]
        assert results[0]["is_low_stock"] is True

    def test_filter_by_category_and_price(self, user_client, make_product):
        make_product(category="Office", selling_price=Decimal("2.00"))
        wanted = make_product(category="Office", selling_price=Decimal("20.00"))
        make_product(category="Garden", selling_price=Decimal("20.00"))

        response = user_client.get(URL, {"category": "office", "min_price": "10"})
        assert [p["id"] for p in response.json()["results"]] == [str(wanted.id)]

    def test_low_stock_filter(self, user_client, make_product):
        low = make_product(stock_quantity=0, minimum_stock_level=1)
        make_product(stock_quantity=9, minimum_stock_level=1)

        response = user_client.get(URL, {"low_stock": "true"})
        assert [p["id"] for p in response.json()["results"]] == [str(low.id)]

    def test_search(self, user_client, make_product):
        make_product(name="Red Stapler")
        make_product(name="Blue Pen")

        response = user_client.get(URL, {"search": "stapler"})
        assert [p["name"] for p in response.json()["results"]] == ["Red Stapler"]


class TestProductUpdate:
    def test_patch_bumps_version(self, admin_client, product):
        response = admin_client.patch(
            f"{URL}{product.id}/", {"selling_price": "11.00"}, format="json"
        )
        assert response.status_code == 200
        data = response.json()
        assert data["selling_price"] == "11.00"
        assert data["version"] == 1

    def test_sku_is_immutable(self, admin_client, product):
        admin_client.patch(f"{URL}{product.id}/", {"sku": "NEW-SKU"}, format="json")
        assert Product.objects.get(id=product.id).sku == "WIDGET-001"

    def test_user_cannot_update(self, user_client, product):
        response = user_client.patch(
            f"{URL}{product.id}/", {"name": "Hacked"}, format="json"
        )
        assert response.status_code == 403

    def test_update_unknown(self, admin_client):
        response = admin_client.patch(f"{URL}{uuid4()}/", {"name": "x"}, format="json")
        assert response.status_code == 404


class TestProductDelete:
    def test_delete_unused(self, admin_client, product):
        response = admin_client.delete(f"{URL}{product.id}/")
        assert response.status_code == 204
        assert not Product.objects.filter(id=product.id).exists()

    def test_delete_referenced_by_order(self, admin_client, user_client, product):
        user_client.post(
            "/api/v1/orders/",
            {"items": [{"product_id": str(product.id), "quantity": 1}]},
            format="json",
        )
        Outgoing.objects.create(product=product, quantity=1)

        response = admin_client.delete(f"{URL}{product.id}/")

        assert response.status_code == 409
        data = response.json()
        assert data["references"] == {"order_items": 1, "purchases": 0, "outgoings": 1}
        assert "1 order item(s)" in data["detail"]
        assert Product.objects.filter(id=product.id).exists()

    def test_user_cannot_delete(self, user_client, product):
        assert user_client.delete(f"{URL}{product.id}/").status_code == 403
