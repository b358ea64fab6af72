"""Domain events for the Orders bounded context.

Events are recorded on the ``Order`` aggregate, persisted to the outbox by
the repository and published on the in-process bus after commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    order_number: str = ""
    status: str = ""
    total_amount: str = "0.00"
    placed_by: Optional[int] = None


@dataclass(frozen=True)
class OrderAccepted(DomainEvent):
    """Raised when an admin accepts a pending order (stock deducted)."""

    order_number: str = ""
    accepted_by: Optional[int] = None


@dataclass(frozen=True)
class OrderDenied(DomainEvent):
    """Raised when an admin denies a pending order."""

    order_number: str = ""
    denied_by: Optional[int] = None


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""

    order_number: str = ""
    previous_status: str = ""
    stock_restored: bool = False


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes through the generic update."""

    order_number: str = ""
    old_status: str = ""
    new_status: str = ""
