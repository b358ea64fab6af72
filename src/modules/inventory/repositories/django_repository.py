"""Django ORM implementations of the ledger repositories."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.inventory.models import Outgoing, Purchase
from modules.inventory.repositories.interfaces import (
    IOutgoingRepository,
    IPurchaseRepository,
)
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class PurchaseDjangoRepository(IPurchaseRepository):
    def get_by_id(self, id: str) -> Optional[Purchase]:
        try:
            return Purchase.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Purchase.objects.select_related("product")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Purchase) -> Purchase:
        entity.save()
        logger.info("purchase.saved", purchase_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        purchase = self.get_by_id(id)
        if not purchase:
            return False
        purchase.delete()
        return True


class OutgoingDjangoRepository(IOutgoingRepository):
    def get_by_id(self, id: str) -> Optional[Outgoing]:
        try:
            return (
                Outgoing.objects.select_related("product", "order")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Outgoing.objects.select_related("product", "order")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Outgoing) -> Outgoing:
        entity.save()
        logger.info("outgoing.saved", outgoing_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        outgoing = self.get_by_id(id)
        if not outgoing:
            return False
        outgoing.delete()
        return True

    def order_exists(self, order_id) -> bool:
        try:
            return Order.objects.filter(id=order_id).exists()
        except (ValueError, ValidationError):
            return False
