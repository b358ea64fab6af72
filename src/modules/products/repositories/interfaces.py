"""Product repository interface (the Inventory Store).

Extends ``IRepository[Product]`` with SKU look-up, row locking and the
single stock-writing primitive ``adjust_stock``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products with optional filters."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional["Product"]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Returns ``None`` if the product does not exist.
        """

    @abstractmethod
    def lock_many(self, ids: Iterable[Any]) -> Dict[Any, "Product"]:
        """Lock every product in *ids* in ascending primary-key order.

        Returns a mapping of product id to the locked instance; missing
        ids are simply absent from the mapping.
        """

    @abstractmethod
    def adjust_stock(self, product: "Product", delta: int) -> "Product":
        """Apply *delta* to the product's stock as a conditional write.

        The write only succeeds if the row still carries the version the
        caller read and, for negative deltas, still has enough stock.

        Raises:
            ProductNotFound: the row no longer exists.
            InsufficientStock: the row exists but cannot cover ``-delta``.
            ConcurrencyConflict: the row changed since it was read.
        """

    @abstractmethod
    def count_references(self, id: str) -> Dict[str, int]:
        """Count order items, purchases and outgoings pointing at a product."""

    @abstractmethod
    def low_stock(self) -> "models.QuerySet[Product]":
        """Products at or below their minimum stock level."""
