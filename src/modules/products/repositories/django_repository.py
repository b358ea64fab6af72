"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Look-ups follow the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions.  ``adjust_stock`` is the only
exception to that rule, because a failed conditional write must abort the
surrounding transaction.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from modules.core.exceptions import ConcurrencyConflict
from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.select_related("supplier").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"category": "Beverages"}
            {"name__icontains": "widget"}
        """
        queryset = Product.objects.select_related("supplier")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info(
            "product.saved",
            product_id=str(entity.id),
            sku=entity.sku,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete a product by ID.

        Returns ``False`` if no product exists with the given ID.  Callers
        check ``count_references`` first; the ``PROTECT`` foreign keys are
        the last line.
        """
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.deleted", product_id=str(id))
        return True

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU (case-insensitive via upper normalisation)."""
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def lock_many(self, ids: Iterable[Any]) -> Dict[Any, Product]:
        # Ascending PK order keeps concurrent lockers from deadlocking.
        products = (
            Product.objects.select_for_update()
            .filter(id__in=set(ids))
            .order_by("id")
        )
        return {product.id: product for product in products}

    # ------------------------------------------------------------------
    # Stock writes
    # ------------------------------------------------------------------

    def adjust_stock(self, product: Product, delta: int) -> Product:
        """Conditionally apply *delta* to ``stock_quantity``.

        ``UPDATE products SET stock_quantity = stock_quantity + delta,
        version = version + 1 WHERE id = ? AND version = ?`` (plus
        ``stock_quantity >= -delta`` when removing stock).  The in-memory
        instance is refreshed on success.
        """
        queryset = Product.objects.filter(id=product.id, version=product.version)
        if delta < 0:
            queryset = queryset.filter(stock_quantity__gte=-delta)

        updated = queryset.update(
            stock_quantity=F("stock_quantity") + delta,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )

        log = logger.bind(product_id=str(product.id), delta=delta)
        if updated == 0:
            current = Product.objects.filter(id=product.id).first()
            if current is None:
                log.warning("product.stock_write_missing")
                raise ProductNotFound(f"Product {product.id} not found.")
            if delta < 0 and current.stock_quantity < -delta:
                log.warning(
                    "product.stock_insufficient",
                    available=current.stock_quantity,
                )
                raise InsufficientStock.for_product(current, -delta)
            log.warning(
                "product.stock_conflict",
                expected_version=product.version,
                actual_version=current.version,
            )
            raise ConcurrencyConflict(
                f"Product {product.id} was modified concurrently."
            )

        product.refresh_from_db(fields=["stock_quantity", "version", "updated_at"])
        log.info("product.stock_adjusted", stock_quantity=product.stock_quantity)
        return product

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def count_references(self, id: str) -> Dict[str, int]:
        product = self.get_by_id(id)
        if not product:
            return {"order_items": 0, "purchases": 0, "outgoings": 0}
        return {
            "order_items": product.order_items.count(),
            "purchases": product.purchases.count(),
            "outgoings": product.outgoings.count(),
        }

    def low_stock(self) -> models.QuerySet:
        return (
            Product.objects.low_stock()
            .select_related("supplier")
            .order_by("stock_quantity", "name")
        )
