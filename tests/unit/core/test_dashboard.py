"""Unit tests for DashboardService."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.core.exceptions import AdminRoleRequired
from modules.core.services import DashboardService
from modules.inventory.repositories.django_repository import (
    OutgoingDjangoRepository,
    PurchaseDjangoRepository,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.suppliers.repositories.django_repository import SupplierDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return DashboardService(
        product_repository=ProductDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        supplier_repository=SupplierDjangoRepository(),
        purchase_repository=PurchaseDjangoRepository(),
        outgoing_repository=OutgoingDjangoRepository(),
    )


def test_requires_admin(service, user_actor):
    with pytest.raises(AdminRoleRequired):
        service.overview(user_actor)


def test_inventory_value_sums_stock_times_selling_price(
    service, make_product, admin_actor
):
    make_product(stock_quantity=3, selling_price=Decimal("1.50"))
    make_product(stock_quantity=0, selling_price=Decimal("99.00"))

    stats = service.overview(admin_actor)["stats"]

    assert stats["total_inventory_value"] == Decimal("4.50")
    assert stats["total_products"] == 2
    assert stats["low_stock_products"] == 0
