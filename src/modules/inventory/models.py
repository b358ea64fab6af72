"""Stock ledger: purchases (stock in) and outgoings (stock out).

Rows are written by ``InventoryService`` only, in the same transaction as
the ``adjust_stock`` call that applies them to the product.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel


class OutgoingReason(models.TextChoices):
    SALE = "Sale", "Sale"
    DAMAGE = "Damage", "Damage"
    TRANSFER = "Transfer", "Transfer"
    RETURN = "Return", "Return"


class Purchase(BaseModel):
    """Stock received from a supplier."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="purchases",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    purchase_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    total_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    supplier_name = models.CharField(max_length=200, blank=True, default="")
    purchase_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "purchases"
        ordering = ["-purchase_date"]
        indexes = [
            models.Index(
                fields=["product", "purchase_date"],
                name="purchases_product_date_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="purchases_quantity_positive",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        self.total_amount = self.purchase_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"Purchase {self.quantity} x {self.product_id}"


class Outgoing(BaseModel):
    """Stock leaving the store (or coming back, for ``Return``)."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="outgoings",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    outgoing_price = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    total_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        null=True,
        blank=True,
    )
    recipient = models.CharField(max_length=200, blank=True, default="")
    reason = models.CharField(
        max_length=20,
        choices=OutgoingReason.choices,
        default=OutgoingReason.SALE,
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="outgoings",
    )
    outgoing_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "outgoings"
        ordering = ["-outgoing_date"]
        indexes = [
            models.Index(
                fields=["product", "outgoing_date"],
                name="outgoings_product_date_idx",
            ),
            models.Index(fields=["reason"], name="outgoings_reason_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="outgoings_quantity_positive",
            ),
        ]

    @property
    def adds_stock(self) -> bool:
        return self.reason == OutgoingReason.RETURN

    def save(self, *args, **kwargs) -> None:
        if self.outgoing_price is not None:
            self.total_amount = self.outgoing_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.reason} {self.quantity} x {self.product_id}"
