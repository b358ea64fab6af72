"""Order repository interface (the Order Store).

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: creation with items, locked reads, the optimistic status
write, status history tracking and idempotency-key look-up.

The Service Layer depends exclusively on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``items`` (list of dicts with ``product_id``,
        ``quantity``, ``unit_price``) and ``status``; every other key is an
        ``Order`` field.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """List orders with optional filters."""

    @abstractmethod
    def transition(self, order: Order, new_status: str, **fields: Any) -> Order:
        """Write ``status`` (and any extra *fields*) as a conditional update.

        Matches on the ``version`` the caller read.

        Raises:
            ConcurrencyConflict: the row changed since it was read.
        """

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def purge(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Delete orders (items and history cascade); returns orders removed."""
