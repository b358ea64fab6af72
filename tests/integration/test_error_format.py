"""Integration tests for standardized error responses."""

import pytest

pytestmark = pytest.mark.integration


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        data = response.json()
        assert data["type"] == "client_error"
        assert isinstance(data["errors"], list)
        assert data["errors"]
        assert "code" in data["errors"][0]
        assert "detail" in data["errors"][0]

    def test_validation_error_has_standard_format(self, user_client):
        response = user_client.post(
            "/api/v1/orders/", {"items": "not-a-list"}, format="json"
        )
        assert response.status_code == 400
        data = response.json()
        assert data["type"] == "validation_error"
        assert isinstance(data["errors"], list)
        assert any(error["attr"].startswith("items") for error in data["errors"])

    def test_malformed_json_has_standard_format(self, user_client):
        response = user_client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        data = response.json()
        assert "type" in data
        assert isinstance(data["errors"], list)

    def test_permission_error_has_standard_format(self, user_client):
        response = user_client.get("/api/v1/suppliers/")
        assert response.status_code == 403
        data = response.json()
        assert data["type"] == "client_error"
        assert data["errors"][0]["code"] == "permission_denied"

    def test_domain_error_carries_detail(self, admin_client, make_product):
        empty = make_product(stock_quantity=0)
        response = admin_client.post(
            "/api/v1/orders/",
            {"items": [{"product_id": str(empty.id), "quantity": 1}]},
            format="json",
        )
        assert response.status_code == 409
        assert "Not enough stock" in response.json()["detail"]
