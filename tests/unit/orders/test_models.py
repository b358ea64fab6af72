"""Unit tests for Order, OrderItem and OrderStatusHistory models."""

from __future__ import annotations

import re
from decimal import Decimal
from unittest.mock import patch

import pytest
from freezegun import freeze_time

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory

pytestmark = pytest.mark.unit


@freeze_time("2026-03-14 10:00:00")
def test_order_number_format():
    order = Order.objects.create(customer_name="Ann")
    assert re.fullmatch(r"ORD-20260314-[0-9A-F]{8}", order.order_number)


def test_order_number_not_regenerated_on_update():
    order = Order.objects.create(customer_name="Ann")
    number = order.order_number
    order.notes = "updated"
    order.save()
    assert order.order_number == number


def test_order_number_retries_on_collision():
    existing = Order.objects.create(customer_name="Ann")
    with patch.object(
        Order,
        "generate_order_number",
        side_effect=[existing.order_number, "ORD-20260101-00000001"],
    ):
        order = Order.objects.create(customer_name="Ben")
    assert order.order_number == "ORD-20260101-00000001"


def test_order_number_gives_up_after_retries():
    existing = Order.objects.create(customer_name="Ann")
    with patch.object(
        Order, "generate_order_number", return_value=existing.order_number
    ):
        with pytest.raises(RuntimeError, match="order_number"):
            Order.objects.create(customer_name="Ben")


def test_defaults():
    order = Order.objects.create()
    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("0.00")
    assert order.version == 0
    assert order.payment_date is None
    assert not order.stock_reserved


def test_item_total_is_quantity_times_unit_price(product):
    order = Order.objects.create()
    item = OrderItem.objects.create(
        order=order, product=product, quantity=3, unit_price=Decimal("2.50")
    )
    assert item.total_price == Decimal("7.50")


def test_item_defaults_to_selling_price(product):
    order = Order.objects.create()
    item = OrderItem.objects.create(order=order, product=product, quantity=2)
    assert item.unit_price == Decimal("10.00")
    assert item.total_price == Decimal("20.00")


def test_recalculate_total(product, make_product):
    order = Order.objects.create()
    OrderItem.objects.create(order=order, product=product, quantity=2)
    OrderItem.objects.create(
        order=order, product=make_product(), quantity=1, unit_price=Decimal("5.00")
    )
    assert order.recalculate_total() == Decimal("25.00")
    assert order.total_amount == Decimal("25.00")


def test_history_str():
    order = Order.objects.create()
    history = OrderStatusHistory.objects.create(
        order=order,
        old_status=OrderStatus.PENDING,
        new_status=OrderStatus.PAID,
    )
    assert str(history).endswith("Pending -> Paid")
