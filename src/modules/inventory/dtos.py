"""Inventory ledger DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.inventory.models import OutgoingReason


def _positive_quantity(v: int) -> int:
    if v < 1:
        raise ValueError("Quantity must be greater than 0.")
    return v


def _non_negative_price(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v < 0:
        raise ValueError("Price must be 0 or greater.")
    return v


class RecordPurchaseDTO(BaseModel):
    """Stock received from a supplier.

    ``supplier_name`` defaults to the product's supplier when blank.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    purchase_price: Decimal
    supplier_name: str = ""
    purchase_date: Optional[datetime] = None
    notes: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        return _positive_quantity(v)

    @field_validator("purchase_price")
    @classmethod
    def price_must_be_non_negative(cls, v: Decimal) -> Decimal:
        return _non_negative_price(v)


class RecordOutgoingDTO(BaseModel):
    """Stock leaving the store; ``Return`` puts it back instead."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    reason: OutgoingReason = OutgoingReason.SALE
    outgoing_price: Optional[Decimal] = None
    recipient: str = ""
    order_id: Optional[UUID] = None
    outgoing_date: Optional[datetime] = None
    notes: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        return _positive_quantity(v)

    @field_validator("outgoing_price")
    @classmethod
    def price_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _non_negative_price(v)
