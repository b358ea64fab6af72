"""Product model with SKU uniqueness and stock control.

Business rules implemented:
- SKU must be unique in the system (normalised to upper case).
- Cost and selling prices are never negative.
- Stock quantity is never negative (DB check constraint backs the
  service-level availability checks).
- A product is "low stock" when it has a minimum level and its stock is
  at or below it.
- Deletion is blocked while order items, purchases or outgoings reference
  the product (``PROTECT`` on those FKs, checked up front by the service).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import VersionedModel

logger = structlog.get_logger(__name__)


class ProductQuerySet(models.QuerySet):
    def low_stock(self) -> ProductQuerySet:
        return self.filter(
            minimum_stock_level__isnull=False,
            stock_quantity__lte=models.F("minimum_stock_level"),
        )

    def in_stock(self) -> ProductQuerySet:
        return self.filter(stock_quantity__gt=0)


class Product(VersionedModel):
    """Product aggregate root.

    ``stock_quantity`` is only ever written through
    ``IProductRepository.adjust_stock`` (conditional update on ``version``)
    or through explicit admin edits.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100)
    stock_quantity = models.PositiveIntegerField(default=0)
    cost_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    selling_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    minimum_stock_level = models.PositiveIntegerField(null=True, blank=True)
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    objects = ProductQuerySet.as_manager()

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
            models.CheckConstraint(
                check=models.Q(cost_price__gte=0) & models.Q(selling_price__gte=0),
                name="products_prices_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_low_stock(self) -> bool:
        return (
            self.minimum_stock_level is not None
            and self.stock_quantity <= self.minimum_stock_level
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        for field in ("cost_price", "selling_price"):
            value = getattr(self, field)
            if value is not None and value < 0:
                raise ValidationError({field: "Price must be 0 or greater."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product.created",
                product_id=str(self.id),
                sku=self.sku,
                stock_quantity=self.stock_quantity,
            )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
