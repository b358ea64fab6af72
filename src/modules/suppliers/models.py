"""Supplier model.

Business rules implemented:
- Supplier name is unique in the system.
- Only active suppliers are auto-assigned to products by category
  (enforced at the product service layer).
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Supplier(BaseModel):
    """Vendor a product can be sourced from."""

    name = models.CharField(max_length=200, unique=True)
    category = models.CharField(max_length=100)
    contact_person_name = models.CharField(max_length=200, blank=True, default="")
    phone_number = models.CharField(max_length=50, blank=True, default="")
    email_address = models.EmailField(max_length=200, blank=True, default="")
    physical_address = models.CharField(max_length=500, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "suppliers"
        ordering = ["name"]
        indexes = [
            models.Index(
                fields=["category", "is_active"], name="suppliers_category_active_idx"
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.name:
            self.name = self.name.strip()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name
