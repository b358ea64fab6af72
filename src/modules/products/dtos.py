"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: input for partial product updates.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


def _non_negative_price(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v < 0:
        raise ValueError("Price must be 0 or greater.")
    return v


def _non_negative_quantity(v: Optional[int]) -> Optional[int]:
    if v is not None and v < 0:
        raise ValueError("Quantity cannot be negative.")
    return v


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    Validates:
    - ``sku``, ``name`` and ``category`` are non-empty strings.
    - ``cost_price`` / ``selling_price`` are 0 or greater.
    - ``stock_quantity`` / ``minimum_stock_level`` are non-negative.
    """

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    category: str
    description: str = ""
    stock_quantity: int = 0
    cost_price: Decimal = Decimal("0.00")
    selling_price: Decimal = Decimal("0.00")
    minimum_stock_level: Optional[int] = None
    supplier_id: Optional[UUID] = None

    @field_validator("sku")
    @classmethod
    def sku_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()

    @field_validator("name", "category")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip()

    @field_validator("cost_price", "selling_price")
    @classmethod
    def prices_must_be_non_negative(cls, v):
        return _non_negative_price(v)

    @field_validator("stock_quantity", "minimum_stock_level")
    @classmethod
    def quantities_must_be_non_negative(cls, v):
        return _non_negative_quantity(v)


class UpdateProductDTO(BaseModel):
    """Immutable DTO for product update requests.

    All fields are optional; only supplied fields will be updated.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    stock_quantity: Optional[int] = None
    cost_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    minimum_stock_level: Optional[int] = None
    supplier_id: Optional[UUID] = None

    @field_validator("cost_price", "selling_price")
    @classmethod
    def prices_must_be_non_negative(cls, v):
        return _non_negative_price(v)

    @field_validator("stock_quantity", "minimum_stock_level")
    @classmethod
    def quantities_must_be_non_negative(cls, v):
        return _non_negative_quantity(v)
