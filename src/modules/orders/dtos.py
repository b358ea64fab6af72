"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``UpdateOrderStatusDTO``: input for the generic status update.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import OrderStatus

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    ``unit_price`` is optional; when omitted the Service Layer uses the
    product's current selling price.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    unit_price: Optional[Decimal] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_must_be_non_negative(
        cls, v: Optional[Decimal]
    ) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Unit price must be 0 or greater.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.
    - A product appears at most once.

    Customer fields are optional; for ``User`` actors blank name/e-mail
    fall back to the actor's own.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    shipping_address: str = ""
    notes: str = ""
    order_date: Optional[datetime] = None
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("customer_name", "customer_email", "customer_phone")
    @classmethod
    def strip_contact(cls, v: str) -> str:
        return (v or "").strip()

    @model_validator(mode="after")
    def no_duplicate_products(self):
        """Prevent duplicate product IDs in the same order."""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


class UpdateOrderStatusDTO(BaseModel):
    """Immutable DTO for the generic status update; unknown values fail."""

    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""
