"""Supplier service layer (Use Cases)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.suppliers.exceptions import SupplierAlreadyExists, SupplierNotFound
from modules.suppliers.models import Supplier

if TYPE_CHECKING:
    from modules.suppliers.dtos import CreateSupplierDTO, UpdateSupplierDTO
    from modules.suppliers.repositories.interfaces import ISupplierRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "name",
    "category",
    "contact_person_name",
    "phone_number",
    "email_address",
    "physical_address",
    "is_active",
)


class SupplierService:
    """Application service for Supplier use-cases."""

    def __init__(self, repository: ISupplierRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_supplier(self, dto: CreateSupplierDTO) -> Supplier:
        """Raises ``SupplierAlreadyExists`` when the name is taken."""
        log = logger.bind(name=dto.name, category=dto.category)
        if self._repo.get_by_name(dto.name):
            log.warning("supplier.duplicate_name")
            raise SupplierAlreadyExists(f"Supplier '{dto.name}' already registered.")

        supplier = Supplier(**dto.model_dump())
        supplier = self._repo.save(supplier)
        log.info("supplier.created", supplier_id=str(supplier.id))
        return supplier

    @transaction.atomic
    def update_supplier(self, id: str, dto: UpdateSupplierDTO) -> Supplier:
        supplier = self.get_supplier(id)

        if dto.name is not None and dto.name.lower() != supplier.name.lower():
            existing = self._repo.get_by_name(dto.name)
            if existing and existing.id != supplier.id:
                raise SupplierAlreadyExists(
                    f"Supplier '{dto.name}' already registered."
                )

        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(supplier, field, value)

        supplier = self._repo.save(supplier)
        logger.info("supplier.updated", supplier_id=str(id))
        return supplier

    def get_supplier(self, id: str) -> Supplier:
        supplier = self._repo.get_by_id(id)
        if not supplier:
            raise SupplierNotFound(f"Supplier {id} not found.")
        return supplier

    def list_suppliers(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    @transaction.atomic
    def delete_supplier(self, id: str) -> None:
        if not self._repo.delete(id):
            raise SupplierNotFound(f"Supplier {id} not found.")
