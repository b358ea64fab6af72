"""Product domain exceptions.

Raised by the Service Layer and by the stock-adjusting repository when
business rules are violated.  The API layer (Views) catches these and
translates them into HTTP responses.
"""

from __future__ import annotations

from typing import Dict, Optional


class ProductAlreadyExists(Exception):
    """A product with the same SKU already exists."""


class ProductNotFound(Exception):
    """The requested product does not exist."""


class ProductInUse(Exception):
    """The product is referenced by orders or ledger entries.

    ``references`` maps the kind of record (``order_items``, ``purchases``,
    ``outgoings``) to how many of them point at the product.
    """

    def __init__(self, message: str, references: Optional[Dict[str, int]] = None):
        super().__init__(message)
        self.references = references or {}


class InsufficientStock(Exception):
    """Not enough stock to cover a requested quantity.

    Carries the offending product so callers can name it.
    """

    def __init__(
        self,
        message: str,
        product_id=None,
        product_name: str = "",
        requested: int = 0,
        available: int = 0,
    ):
        super().__init__(message)
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available

    @classmethod
    def for_product(cls, product, requested: int) -> InsufficientStock:
        return cls(
            f"Not enough stock for product {product.name}: "
            f"requested {requested}, available {product.stock_quantity}.",
            product_id=product.id,
            product_name=product.name,
            requested=requested,
            available=product.stock_quantity,
        )
