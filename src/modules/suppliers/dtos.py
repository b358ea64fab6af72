"""Supplier DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


def _strip_required(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} must not be empty.")
    return value.strip()


class CreateSupplierDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    contact_person_name: str = ""
    phone_number: str = ""
    email_address: str = ""
    physical_address: str = ""
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v, "Name")

    @field_validator("category")
    @classmethod
    def category_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v, "Category")


class UpdateSupplierDTO(BaseModel):
    """Partial update: ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    category: Optional[str] = None
    contact_person_name: Optional[str] = None
    phone_number: Optional[str] = None
    email_address: Optional[str] = None
    physical_address: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "category")
    @classmethod
    def must_not_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, "Field")

