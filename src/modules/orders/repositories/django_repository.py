"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` to ensure
the Order aggregate (Order + OrderItems) is persisted atomically.

Status writes go through ``transition``: a conditional ``UPDATE`` on the
row's ``version`` on top of the ``select_for_update()`` lock taken by
``get_for_update``.  Pending domain events are drained into the outbox
on every ``save`` and ``transition``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from modules.core.exceptions import ConcurrencyConflict
from modules.core.outbox import record_events
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


def _with_relations(queryset: models.QuerySet) -> models.QuerySet:
    return queryset.select_related("placed_by").prefetch_related(
        "items__product", "status_history"
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys:
        - ``items`` (required): list of dicts with ``product_id``,
          ``quantity``, ``unit_price``
        - ``status`` (required)
        - any other ``Order`` field (customer details, ``notes``,
          ``order_date``, ``idempotency_key``, ``placed_by_id``)
        """
        fields = {key: value for key, value in data.items() if key != "items"}
        if fields.get("order_date") is None:
            fields.pop("order_date", None)
        order = Order(**fields)
        order.save()

        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                product_id=item_data["product_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()

        total = order.recalculate_total()
        order.save(update_fields=["total_amount"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            item_count=len(items),
            total_amount=str(total),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        ``prefetch_related`` batches items, items.product and status
        history into separate queries (no N+1).

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return _with_relations(Order.objects.filter(id=id)).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Eager-loads items (with product) so the caller can iterate
        over them while the row is locked.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """List orders with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "Pending"}
            {"customer_email__iexact": "ann@example.com"}
        """
        queryset = _with_relations(Order.objects.all())
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""
        return _with_relations(Order.objects.filter(idempotency_key=key)).first()

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order and its pending events."""
        entity.save()
        rows = record_events(entity, topic=OUTBOX_TOPIC)
        logger.info("order.saved", order_id=str(entity.id), event_count=len(rows))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order; items and history cascade."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.deleted", order_id=str(id))
        return True

    @transaction.atomic
    def purge(self, filters: Optional[Dict[str, Any]] = None) -> int:
        queryset = Order.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        _, per_model = queryset.delete()
        removed = per_model.get(Order._meta.label, 0)
        logger.info("order.purged", removed=removed, filters=filters or {})
        return removed

    # ------------------------------------------------------------------
    # Status writes
    # ------------------------------------------------------------------

    @transaction.atomic
    def transition(self, order: Order, new_status: str, **fields: Any) -> Order:
        """Optimistic status write.

        ``UPDATE orders SET status = ?, version = version + 1, ...
        WHERE id = ? AND version = ?``; zero rows means a concurrent writer
        got there first.
        """
        now = timezone.now()
        updated = Order.objects.filter(id=order.id, version=order.version).update(
            status=new_status,
            version=F("version") + 1,
            updated_at=now,
            **fields,
        )
        if updated == 0:
            logger.warning(
                "order.status_conflict",
                order_id=str(order.id),
                expected_version=order.version,
                new_status=new_status,
            )
            raise ConcurrencyConflict(
                f"Order {order.order_number} was modified concurrently."
            )

        order.status = new_status
        for field, value in fields.items():
            setattr(order, field, value)
        order.version += 1
        order.updated_at = now

        record_events(order, topic=OUTBOX_TOPIC)
        return order

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            changed_by_id=changed_by,
        )
        history.save()

        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history
