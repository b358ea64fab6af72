"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.

Stock and product errors are shared with the Inventory Store and
re-exported here so order callers have a single import point.
"""

from __future__ import annotations

from modules.products.exceptions import InsufficientStock, ProductNotFound

__all__ = [
    "InsufficientStock",
    "IdempotencyKeyConflict",
    "InvalidOrderStatus",
    "OrderNotFound",
    "OrderNotPending",
    "OrderValidationError",
    "ProductNotFound",
]


class OrderNotFound(Exception):
    """The requested order does not exist."""


class OrderValidationError(Exception):
    """The order request is malformed (e.g. no items, unknown status)."""


class InvalidOrderStatus(Exception):
    """The order's current status does not allow the requested operation."""


class OrderNotPending(InvalidOrderStatus):
    """Accept and deny only apply to ``Pending`` orders."""

    def __init__(self, order_number: str, status: str):
        super().__init__(
            f"Order {order_number} is {status}; only Pending orders can be "
            f"accepted or denied."
        )
        self.order_number = order_number
        self.status = status


class IdempotencyKeyConflict(Exception):
    """The idempotency key already belongs to an order placed by someone else."""
