"""Inventory ledger service (Use Cases).

Every ledger entry and the stock change it implies are written in one
``transaction.atomic`` block: the product row is locked, the entry saved,
then ``IProductRepository.adjust_stock`` applies the delta as an
optimistic conditional write.

- Purchase: adds ``quantity`` to stock.
- Outgoing with reason ``Return``: adds ``quantity`` back, no check.
- Outgoing with any other reason: availability check, then subtracts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.inventory.exceptions import LedgerEntryNotFound, LinkedOrderNotFound
from modules.inventory.models import Outgoing, OutgoingReason, Purchase
from modules.products.exceptions import InsufficientStock, ProductNotFound

if TYPE_CHECKING:
    from modules.core.authorization import ActorContext
    from modules.inventory.dtos import RecordOutgoingDTO, RecordPurchaseDTO
    from modules.inventory.repositories.interfaces import (
        IOutgoingRepository,
        IPurchaseRepository,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class InventoryService:
    def __init__(
        self,
        purchase_repository: IPurchaseRepository,
        outgoing_repository: IOutgoingRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._purchase_repo = purchase_repository
        self._outgoing_repo = outgoing_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def record_purchase(
        self, dto: RecordPurchaseDTO, actor: ActorContext
    ) -> Purchase:
        """Record stock received and add it to the product.

        Raises:
            AdminRoleRequired: actor is not an admin.
            ProductNotFound: product does not exist.
            ConcurrencyConflict: product changed during the write.
        """
        actor.require_admin("record purchases")
        log = logger.bind(product_id=str(dto.product_id), quantity=dto.quantity)

        product = self._lock_product(dto.product_id)
        supplier_name = dto.supplier_name
        if not supplier_name and product.supplier_id:
            supplier_name = product.supplier.name

        purchase = Purchase(
            product=product,
            quantity=dto.quantity,
            purchase_price=dto.purchase_price,
            supplier_name=supplier_name,
            notes=dto.notes,
        )
        if dto.purchase_date is not None:
            purchase.purchase_date = dto.purchase_date
        purchase = self._purchase_repo.save(purchase)

        self._product_repo.adjust_stock(product, dto.quantity)
        log.info(
            "inventory.purchase_recorded",
            purchase_id=str(purchase.id),
            stock_quantity=product.stock_quantity,
        )
        return purchase

    @transaction.atomic
    def record_outgoing(
        self, dto: RecordOutgoingDTO, actor: ActorContext
    ) -> Outgoing:
        """Record stock leaving (or returning to) the store.

        Raises:
            AdminRoleRequired: actor is not an admin.
            ProductNotFound: product does not exist.
            LinkedOrderNotFound: ``order_id`` given but unknown.
            InsufficientStock: non-return outgoing exceeds current stock.
            ConcurrencyConflict: product changed during the write.
        """
        actor.require_admin("record outgoings")
        log = logger.bind(
            product_id=str(dto.product_id),
            quantity=dto.quantity,
            reason=dto.reason,
        )

        if dto.order_id is not None and not self._outgoing_repo.order_exists(
            dto.order_id
        ):
            raise LinkedOrderNotFound(f"Order {dto.order_id} not found.")

        product = self._lock_product(dto.product_id)
        returning = dto.reason == OutgoingReason.RETURN
        if not returning and product.stock_quantity < dto.quantity:
            log.warning(
                "inventory.outgoing_insufficient",
                available=product.stock_quantity,
            )
            raise InsufficientStock.for_product(product, dto.quantity)

        outgoing = Outgoing(
            product=product,
            quantity=dto.quantity,
            reason=dto.reason,
            outgoing_price=dto.outgoing_price,
            recipient=dto.recipient,
            order_id=dto.order_id,
            notes=dto.notes,
        )
        if dto.outgoing_date is not None:
            outgoing.outgoing_date = dto.outgoing_date
        outgoing = self._outgoing_repo.save(outgoing)

        delta = dto.quantity if returning else -dto.quantity
        self._product_repo.adjust_stock(product, delta)
        log.info(
            "inventory.outgoing_recorded",
            outgoing_id=str(outgoing.id),
            stock_quantity=product.stock_quantity,
        )
        return outgoing

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_purchases(self, filters: Optional[Dict[str, Any]] = None):
        return self._purchase_repo.list(filters)

    def list_outgoings(self, filters: Optional[Dict[str, Any]] = None):
        return self._outgoing_repo.list(filters)

    def get_purchase(self, id: str) -> Purchase:
        purchase = self._purchase_repo.get_by_id(id)
        if not purchase:
            raise LedgerEntryNotFound(f"Purchase {id} not found.")
        return purchase

    def get_outgoing(self, id: str) -> Outgoing:
        outgoing = self._outgoing_repo.get_by_id(id)
        if not outgoing:
            raise LedgerEntryNotFound(f"Outgoing {id} not found.")
        return outgoing

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_product(self, product_id):
        product = self._product_repo.get_for_update(str(product_id))
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        return product
