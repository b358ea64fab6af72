"""Unit tests for OrderService.

Covers:
- Creation: admins take stock immediately (clamped), users queue ``Pending``.
- Accept / deny of pending orders.
- Cancellation with stock restoration from ``Processing`` only.
- Generic status update side effects.
- Visibility rules for ``User`` actors.
- Purge, idempotency and history recording.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.authorization import ActorContext, Role
from modules.core.exceptions import AdminRoleRequired, ConcurrencyConflict
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    IdempotencyKeyConflict,
    InsufficientStock,
    InvalidOrderStatus,
    OrderNotFound,
    OrderNotPending,
    OrderValidationError,
    ProductNotFound,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.products.models import Product

pytestmark = pytest.mark.unit


def _dto(*lines, **fields) -> CreateOrderDTO:
    return CreateOrderDTO(
        items=[
            CreateOrderItemDTO(product_id=product.id, quantity=quantity)
            for product, quantity in lines
        ],
        **fields,
    )


def _stock(product) -> int:
    return Product.objects.get(id=product.id).stock_quantity


@pytest.fixture()
def pending_order(order_service, product, user_actor):
    return order_service.create_order(_dto((product, 2)), user_actor)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateOrderAsUser:
    def test_creates_pending_without_touching_stock(
        self, order_service, product, user_actor
    ):
        order = order_service.create_order(_dto((product, 2)), user_actor)

        assert order.status == OrderStatus.PENDING
        assert order.total_amount == Decimal("20.00")
        assert _stock(product) == 10

    def test_quantity_above_stock_is_accepted_while_pending(
        self, order_service, product, user_actor
    ):
        order = order_service.create_order(_dto((product, 50)), user_actor)
        assert order.items.get().quantity == 50
        assert _stock(product) == 10

    def test_customer_defaults_to_actor(self, order_service, product, user_actor):
        order = order_service.create_order(_dto((product, 1)), user_actor)
        assert order.customer_name == "Sam Shopper"
        assert order.customer_email == "shopper@example.com"
        assert order.placed_by_id == user_actor.user_id

    def test_explicit_customer_kept(self, order_service, product, user_actor):
        order = order_service.create_order(
            _dto((product, 1), customer_name="Gift", customer_email="g@example.com"),
            user_actor,
        )
        assert order.customer_name == "Gift"
        assert order.customer_email == "g@example.com"

    def test_unit_price_snapshot(self, order_service, product, user_actor):
        order = order_service.create_order(_dto((product, 1)), user_actor)
        Product.objects.filter(id=product.id).update(selling_price=Decimal("99.00"))

        item = Order.objects.get(id=order.id).items.get()
        assert item.unit_price == Decimal("10.00")

    def test_explicit_unit_price_used(self, order_service, product, user_actor):
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(
                    product_id=product.id, quantity=2, unit_price=Decimal("8.00")
                )
            ]
        )
        order = order_service.create_order(dto, user_actor)
        assert order.total_amount == Decimal("16.00")

    def test_unknown_product(self, order_service, user_actor):
        dto = CreateOrderDTO(items=[CreateOrderItemDTO(product_id=uuid4(), quantity=1)])
        with pytest.raises(ProductNotFound):
            order_service.create_order(dto, user_actor)
        assert Order.objects.count() == 0

    def test_initial_history_entry(self, order_service, product, user_actor):
        order = order_service.create_order(_dto((product, 1)), user_actor)
        history = OrderStatusHistory.objects.get(order=order)
        assert history.old_status is None
        assert history.new_status == OrderStatus.PENDING
        assert history.changed_by_id == user_actor.user_id


class TestCreateOrderAsAdmin:
    def test_deducts_stock_and_processes(self, order_service, product, admin_actor):
        order = order_service.create_order(_dto((product, 3)), admin_actor)

        assert order.status == OrderStatus.PROCESSING
        assert order.total_amount == Decimal("30.00")
        assert _stock(product) == 7

    def test_clamps_to_available_stock(self, order_service, make_product, admin_actor):
        scarce = make_product(stock_quantity=2)
        order = order_service.create_order(_dto((scarce, 5)), admin_actor)

        item = order.items.get()
        assert item.quantity == 2
        assert order.total_amount == Decimal("20.00")
        assert _stock(scarce) == 0

    def test_drops_lines_without_stock(self, order_service, make_product, admin_actor):
        empty = make_product(stock_quantity=0)
        stocked = make_product(stock_quantity=5)
        order = order_service.create_order(
            _dto((empty, 1), (stocked, 1)), admin_actor
        )

        assert [item.product_id for item in order.items.all()] == [stocked.id]
        assert _stock(empty) == 0
        assert _stock(stocked) == 4

    def test_all_lines_without_stock_fails(
        self, order_service, make_product, admin_actor
    ):
        empty = make_product(stock_quantity=0)
        with pytest.raises(InsufficientStock) as exc_info:
            order_service.create_order(_dto((empty, 2)), admin_actor)

        assert exc_info.value.product_id == empty.id
        assert Order.objects.count() == 0

    def test_unknown_product_rolls_back_stock(
        self, order_service, product, admin_actor
    ):
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=1),
                CreateOrderItemDTO(product_id=uuid4(), quantity=1),
            ]
        )
        with pytest.raises(ProductNotFound):
            order_service.create_order(dto, admin_actor)
        assert _stock(product) == 10

    def test_admin_customer_not_defaulted(self, order_service, product, admin_actor):
        order = order_service.create_order(_dto((product, 1)), admin_actor)
        assert order.customer_email == ""


class TestIdempotency:
    def test_repeated_key_returns_existing_order(
        self, order_service, product, admin_actor
    ):
        first = order_service.create_order(
            _dto((product, 1), idempotency_key="key-1"), admin_actor
        )
        second = order_service.create_order(
            _dto((product, 1), idempotency_key="key-1"), admin_actor
        )

        assert first.id == second.id
        assert Order.objects.count() == 1
        assert _stock(product) == 9

    def test_key_of_another_user_conflicts(
        self, order_service, product, user_actor, other_user
    ):
        order_service.create_order(
            _dto((product, 1), idempotency_key="key-2"), user_actor
        )
        intruder = ActorContext.from_user(other_user)

        with pytest.raises(IdempotencyKeyConflict):
            order_service.create_order(
                _dto((product, 1), idempotency_key="key-2"), intruder
            )
        assert Order.objects.count() == 1

    def test_admin_may_repeat_any_key(
        self, order_service, pending_order, product, admin_actor
    ):
        Order.objects.filter(id=pending_order.id).update(idempotency_key="key-3")
        again = order_service.create_order(
            _dto((product, 1), idempotency_key="key-3"), admin_actor
        )
        assert again.id == pending_order.id
        assert _stock(product) == 10


# ---------------------------------------------------------------------------
# Accept / deny
# ---------------------------------------------------------------------------


class TestAcceptOrder:
    def test_accept_deducts_and_marks_paid(
        self, order_service, pending_order, product, admin_actor
    ):
        order = order_service.accept_order(pending_order.id, admin_actor)

        assert order.status == OrderStatus.PAID
        assert order.payment_date is not None
        assert order.version == pending_order.version + 1
        assert _stock(product) == 8

    def test_accept_checks_every_line_before_deducting(
        self, order_service, make_product, user_actor, admin_actor
    ):
        plenty = make_product(stock_quantity=10)
        scarce = make_product(stock_quantity=1)
        order = order_service.create_order(
            _dto((plenty, 2), (scarce, 3)), user_actor
        )

        with pytest.raises(InsufficientStock) as exc_info:
            order_service.accept_order(order.id, admin_actor)

        assert exc_info.value.product_id == scarce.id
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 1
        assert _stock(plenty) == 10
        assert Order.objects.get(id=order.id).status == OrderStatus.PENDING

    def test_accept_requires_admin(self, order_service, pending_order, user_actor):
        with pytest.raises(AdminRoleRequired):
            order_service.accept_order(pending_order.id, user_actor)

    def test_accept_non_pending(self, order_service, pending_order, admin_actor):
        order_service.deny_order(pending_order.id, admin_actor)
        with pytest.raises(OrderNotPending) as exc_info:
            order_service.accept_order(pending_order.id, admin_actor)
        assert isinstance(exc_info.value, InvalidOrderStatus)

    def test_accept_unknown_order(self, order_service, admin_actor):
        with pytest.raises(OrderNotFound):
            order_service.accept_order(uuid4(), admin_actor)

    def test_accept_records_history(
        self, order_service, pending_order, admin_actor
    ):
        order_service.accept_order(pending_order.id, admin_actor)
        latest = OrderStatusHistory.objects.filter(order=pending_order).first()
        assert latest.old_status == OrderStatus.PENDING
        assert latest.new_status == OrderStatus.PAID
        assert latest.changed_by_id == admin_actor.user_id


class TestDenyOrder:
    def test_deny_leaves_stock(self, order_service, pending_order, product, admin_actor):
        order = order_service.deny_order(pending_order.id, admin_actor)
        assert order.status == OrderStatus.DENIED
        assert _stock(product) == 10

    def test_deny_requires_admin(self, order_service, pending_order, user_actor):
        with pytest.raises(AdminRoleRequired):
            order_service.deny_order(pending_order.id, user_actor)

    def test_deny_paid_order(self, order_service, pending_order, admin_actor):
        order_service.accept_order(pending_order.id, admin_actor)
        with pytest.raises(OrderNotPending):
            order_service.deny_order(pending_order.id, admin_actor)


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


class TestCancelOrder:
    def test_cancel_processing_restores_stock(
        self, order_service, product, admin_actor
    ):
        order = order_service.create_order(_dto((product, 4)), admin_actor)
        assert _stock(product) == 6

        cancelled = order_service.cancel_order(order.id, admin_actor)

        assert cancelled.status == OrderStatus.CANCELLED
        assert _stock(product) == 10

    def test_cancel_pending_leaves_stock(
        self, order_service, pending_order, product, user_actor
    ):
        order = order_service.cancel_order(pending_order.id, user_actor)
        assert order.status == OrderStatus.CANCELLED
        assert _stock(product) == 10

    def test_cancel_paid_keeps_stock_deducted(
        self, order_service, pending_order, product, admin_actor
    ):
        order_service.accept_order(pending_order.id, admin_actor)
        order_service.cancel_order(pending_order.id, admin_actor)
        assert _stock(product) == 8

    def test_cancel_twice_is_noop(self, order_service, product, admin_actor):
        order = order_service.create_order(_dto((product, 4)), admin_actor)
        order_service.cancel_order(order.id, admin_actor)
        again = order_service.cancel_order(order.id, admin_actor)

        assert again.status == OrderStatus.CANCELLED
        assert _stock(product) == 10
        assert OrderStatusHistory.objects.filter(order_id=order.id).count() == 2

    def test_cancel_notes_recorded(self, order_service, pending_order, user_actor):
        order_service.cancel_order(
            pending_order.id, user_actor, notes="Changed my mind"
        )
        latest = OrderStatusHistory.objects.filter(order=pending_order).first()
        assert latest.notes == "Changed my mind"

    def test_user_cannot_cancel_foreign_order(
        self, order_service, pending_order, other_user
    ):
        with pytest.raises(OrderNotFound):
            order_service.cancel_order(
                pending_order.id, ActorContext.from_user(other_user)
            )


# ---------------------------------------------------------------------------
# Generic status update
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_pending_to_processing_deducts(
        self, order_service, pending_order, product, admin_actor
    ):
        order = order_service.update_status(
            pending_order.id, OrderStatus.PROCESSING, admin_actor
        )
        assert order.status == OrderStatus.PROCESSING
        assert _stock(product) == 8

    def test_pending_to_processing_insufficient(
        self, order_service, pending_order, product, admin_actor
    ):
        Product.objects.filter(id=product.id).update(stock_quantity=1)
        with pytest.raises(InsufficientStock):
            order_service.update_status(
                pending_order.id, OrderStatus.PROCESSING, admin_actor
            )
        assert Order.objects.get(id=pending_order.id).status == OrderStatus.PENDING

    def test_processing_to_cancelled_restores(
        self, order_service, product, admin_actor
    ):
        order = order_service.create_order(_dto((product, 3)), admin_actor)
        order_service.update_status(order.id, OrderStatus.CANCELLED, admin_actor)
        assert _stock(product) == 10

    def test_paid_to_processing_does_not_deduct_again(
        self, order_service, pending_order, product, admin_actor
    ):
        order_service.accept_order(pending_order.id, admin_actor)
        order_service.update_status(
            pending_order.id, OrderStatus.PROCESSING, admin_actor
        )
        assert _stock(product) == 8

    def test_processing_round_trip_deducts_once(
        self, order_service, pending_order, product, admin_actor
    ):
        for status in (
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.PROCESSING,
            OrderStatus.DELIVERED,
            OrderStatus.PROCESSING,
        ):
            order_service.update_status(pending_order.id, status, admin_actor)
            assert _stock(product) == 8

        order = order_service.update_status(
            pending_order.id, OrderStatus.CANCELLED, admin_actor
        )
        assert not order.stock_reserved
        assert _stock(product) == 10

    def test_back_to_pending_then_accept_deducts_once(
        self, order_service, pending_order, product, admin_actor
    ):
        order_service.update_status(
            pending_order.id, OrderStatus.PROCESSING, admin_actor
        )
        order_service.update_status(pending_order.id, OrderStatus.PENDING, admin_actor)
        order = order_service.accept_order(pending_order.id, admin_actor)

        assert order.status == OrderStatus.PAID
        assert order.stock_reserved
        assert _stock(product) == 8

    def test_processing_again_after_restock_deducts(
        self, order_service, product, admin_actor
    ):
        order = order_service.create_order(_dto((product, 3)), admin_actor)
        order_service.cancel_order(order.id, admin_actor)
        assert _stock(product) == 10

        order = order_service.update_status(
            order.id, OrderStatus.PROCESSING, admin_actor
        )
        assert order.stock_reserved
        assert _stock(product) == 7

    def test_plain_overwrite_has_no_stock_effect(
        self, order_service, pending_order, product, admin_actor
    ):
        order = order_service.update_status(
            pending_order.id, OrderStatus.SHIPPED, admin_actor, notes="Courier"
        )
        assert order.status == OrderStatus.SHIPPED
        assert _stock(product) == 10
        latest = OrderStatusHistory.objects.filter(order=pending_order).first()
        assert latest.notes == "Courier"

    def test_unknown_status_rejected(self, order_service, pending_order, admin_actor):
        with pytest.raises(OrderValidationError):
            order_service.update_status(pending_order.id, "Lost", admin_actor)

    def test_requires_admin(self, order_service, pending_order, user_actor):
        with pytest.raises(AdminRoleRequired):
            order_service.update_status(
                pending_order.id, OrderStatus.SHIPPED, user_actor
            )


# ---------------------------------------------------------------------------
# Queries and purge
# ---------------------------------------------------------------------------


class TestVisibility:
    def test_user_sees_own_orders_only(
        self, order_service, product, user_actor, other_user
    ):
        mine = order_service.create_order(_dto((product, 1)), user_actor)
        other = ActorContext.from_user(other_user)
        theirs = order_service.create_order(_dto((product, 1)), other)

        assert list(order_service.list_orders(actor=user_actor)) == [mine]
        with pytest.raises(OrderNotFound):
            order_service.get_order(theirs.id, user_actor)

    def test_email_match_is_case_insensitive(
        self, order_service, product, admin_actor, user_actor
    ):
        order = order_service.create_order(
            _dto((product, 1), customer_email="SHOPPER@example.com"), admin_actor
        )
        assert order_service.get_order(order.id, user_actor).id == order.id

    def test_user_without_email_sees_nothing(self, order_service, pending_order):
        actor = ActorContext(role=Role.USER, user_id=999)
        assert list(order_service.list_orders(actor=actor)) == []
        with pytest.raises(OrderNotFound):
            order_service.get_order(pending_order.id, actor)

    def test_admin_sees_everything(
        self, order_service, pending_order, product, admin_actor
    ):
        order_service.create_order(_dto((product, 1)), admin_actor)
        assert order_service.list_orders(actor=admin_actor).count() == 2

    def test_pending_queue(self, order_service, pending_order, product, admin_actor):
        order_service.create_order(_dto((product, 1)), admin_actor)
        assert list(order_service.list_pending_orders(admin_actor)) == [pending_order]

    def test_pending_queue_requires_admin(self, order_service, user_actor):
        with pytest.raises(AdminRoleRequired):
            order_service.list_pending_orders(user_actor)

    def test_get_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order("not-a-uuid")


class TestPurge:
    def test_purge_by_status(self, order_service, pending_order, product, admin_actor):
        kept = order_service.create_order(_dto((product, 1)), admin_actor)

        removed = order_service.purge_orders(admin_actor, status=OrderStatus.PENDING)

        assert removed == 1
        assert list(Order.objects.values_list("id", flat=True)) == [kept.id]
        assert not OrderStatusHistory.objects.filter(order_id=pending_order.id).exists()

    def test_purge_all_does_not_restore_stock(
        self, order_service, product, admin_actor
    ):
        order_service.create_order(_dto((product, 4)), admin_actor)
        assert order_service.purge_orders(admin_actor) == 1
        assert _stock(product) == 6

    def test_purge_requires_admin(self, order_service, pending_order, user_actor):
        with pytest.raises(AdminRoleRequired):
            order_service.purge_orders(user_actor)

    def test_purge_unknown_status(self, order_service, admin_actor):
        with pytest.raises(OrderValidationError):
            order_service.purge_orders(admin_actor, status="Lost")


class TestConcurrency:
    def test_stale_version_transition_conflicts(self, pending_order):
        repo = OrderDjangoRepository()
        stale = Order.objects.get(id=pending_order.id)
        Order.objects.filter(id=pending_order.id).update(version=5)

        with pytest.raises(ConcurrencyConflict):
            repo.transition(stale, OrderStatus.DENIED)

        assert Order.objects.get(id=pending_order.id).status == OrderStatus.PENDING


def test_order_scenario_from_pending_to_cancelled(
    order_service, product, user_actor, admin_actor
):
    """Pending 2 x 10.00, accepted (stock -2, Paid), cancelled (no restore)."""
    order = order_service.create_order(_dto((product, 2)), user_actor)
    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("20.00")

    order = order_service.accept_order(order.id, admin_actor)
    assert order.status == OrderStatus.PAID
    assert _stock(product) == 8

    order = order_service.cancel_order(order.id, admin_actor)
    assert order.status == OrderStatus.CANCELLED
    assert _stock(product) == 8
    assert [h.new_status for h in order.status_history.all()] == [
        OrderStatus.CANCELLED,
        OrderStatus.PAID,
        OrderStatus.PENDING,
    ]
