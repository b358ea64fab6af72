"""Django ORM implementation of the Supplier repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.suppliers.models import Supplier
from modules.suppliers.repositories.interfaces import ISupplierRepository

logger = structlog.get_logger(__name__)


class SupplierDjangoRepository(ISupplierRepository):
    """Concrete Supplier repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Supplier]:
        try:
            return Supplier.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Supplier.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Supplier) -> Supplier:
        entity.save()
        logger.info("supplier.saved", supplier_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete a supplier; products referencing it keep ``NULL``."""
        supplier = self.get_by_id(id)
        if not supplier:
            return False
        supplier.delete()
        logger.info("supplier.deleted", supplier_id=str(id))
        return True

    def get_by_name(self, name: str) -> Optional[Supplier]:
        return Supplier.objects.filter(name__iexact=name.strip()).first()

    def first_active_for_category(self, category: str) -> Optional[Supplier]:
        return (
            Supplier.objects.filter(is_active=True, category=category)
            .order_by("name")
            .first()
        )
