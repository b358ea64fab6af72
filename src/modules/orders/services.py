"""Order service layer (the Order Lifecycle Manager).

Orchestrates order creation, acceptance, denial, cancellation and the
generic status update.  All write operations are atomic; the service
defines the unit-of-work boundary and takes the acting user's
``ActorContext`` explicitly.

Stock rules:
- A ``User`` creates a ``Pending`` order; no stock is checked or moved.
- An ``Admin`` creates an order that takes stock immediately: each line
  is clamped to what is available (lines with no stock are dropped) and
  the order is stored as ``Processing``.
- ``Order.stock_reserved`` records whether the item quantities are
  currently subtracted.  Accepting, or moving to ``Processing``, deducts
  only while it is unset, checking every line first.
- Cancelling from ``Processing`` gives the stock back.  No other
  transition touches stock (cancelling a ``Paid`` order keeps it deducted).

Locking: the order row is taken with ``SELECT FOR UPDATE``; products are
locked in ascending primary-key order; every write is additionally a
conditional update on ``version`` and raises ``ConcurrencyConflict``
when another transaction won.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone
from pydantic import ValidationError as PydanticValidationError

from modules.orders.constants import (
    ACCEPTABLE_FROM,
    DENIABLE_FROM,
    RESTOCK_ON_CANCEL_FROM,
    OrderStatus,
)
from modules.orders.dtos import UpdateOrderStatusDTO
from modules.orders.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCreated,
    OrderDenied,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    IdempotencyKeyConflict,
    InsufficientStock,
    OrderNotFound,
    OrderNotPending,
    OrderValidationError,
    ProductNotFound,
)

if TYPE_CHECKING:
    from modules.core.authorization import ActorContext
    from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: ActorContext) -> Order:
        """Create an order for *actor*.

        Steps:
        1. Return the existing order for a repeated idempotency key.
        2. Resolve every product (locked, in PK order, for admins).
        3. Admin: clamp and deduct stock, status ``Processing``.
           User: no stock effect, status ``Pending``.
        4. Persist order + items, outbox event and initial history.

        An admin order is stored as ``Processing`` rather than ``Pending``:
        its stock is already taken, so it must never reach ``accept_order``.

        Raises:
            IdempotencyKeyConflict: the key belongs to another user's order.
            OrderValidationError: no items.
            ProductNotFound: a product does not exist.
            InsufficientStock: admin order where no line has any stock.
            ConcurrencyConflict: a product changed during the stock write.
        """
        log = logger.bind(actor_role=actor.role, item_count=len(dto.items))
        log.info("order.creation_started")

        if not dto.items:
            raise OrderValidationError("Order must have at least one item.")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                if not actor.is_admin and existing.placed_by_id != actor.user_id:
                    log.warning(
                        "order.idempotency_key_conflict",
                        order_id=str(existing.id),
                    )
                    raise IdempotencyKeyConflict(
                        "Idempotency-Key is already used by another order."
                    )
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        if actor.is_admin:
            lines = self._reserve_clamped(dto.items, log)
            status = OrderStatus.PROCESSING
        else:
            lines = self._price_lines(dto.items)
            status = OrderStatus.PENDING

        customer_name = dto.customer_name
        customer_email = dto.customer_email
        if not actor.is_admin:
            customer_name = customer_name or actor.name
            customer_email = customer_email or actor.email

        order = self._order_repo.create(
            {
                "items": lines,
                "status": status,
                "customer_name": customer_name,
                "customer_email": customer_email,
                "customer_phone": dto.customer_phone,
                "shipping_address": dto.shipping_address,
                "notes": dto.notes,
                "order_date": dto.order_date,
                "idempotency_key": dto.idempotency_key,
                "placed_by_id": actor.user_id,
                "stock_reserved": actor.is_admin,
            }
        )

        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                status=order.status,
                total_amount=str(order.total_amount),
                placed_by=actor.user_id,
            )
        )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=status,
            notes="Order created",
            changed_by=actor.user_id,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            status=status,
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def accept_order(self, order_id: Any, actor: ActorContext) -> Order:
        """Accept a pending order: check all stock, deduct, mark ``Paid``.

        Raises:
            AdminRoleRequired: actor is not an admin.
            OrderNotFound: order does not exist.
            OrderNotPending: order is not ``Pending``.
            InsufficientStock: some line exceeds current stock (nothing
                is deducted).
            ConcurrencyConflict: order or product changed concurrently.
        """
        actor.require_admin("accept orders")
        order = self._lock_order(order_id)
        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.status not in ACCEPTABLE_FROM:
            log.warning("order.accept_not_pending")
            raise OrderNotPending(order.order_number, order.status)

        if not order.stock_reserved:
            self._deduct_stock(order, log)

        old_status = order.status
        order.add_domain_event(
            OrderAccepted(
                aggregate_id=order.id,
                order_number=order.order_number,
                accepted_by=actor.user_id,
            )
        )
        self._order_repo.transition(
            order,
            OrderStatus.PAID,
            payment_date=timezone.now(),
            stock_reserved=True,
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PAID,
            notes="Order accepted",
            old_status=old_status,
            changed_by=actor.user_id,
        )

        log.info("order.accepted")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def deny_order(self, order_id: Any, actor: ActorContext) -> Order:
        """Deny a pending order; stock is never touched.

        Raises:
            AdminRoleRequired: actor is not an admin.
            OrderNotFound: order does not exist.
            OrderNotPending: order is not ``Pending``.
        """
        actor.require_admin("deny orders")
        order = self._lock_order(order_id)
        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.status not in DENIABLE_FROM:
            log.warning("order.deny_not_pending")
            raise OrderNotPending(order.order_number, order.status)

        old_status = order.status
        order.add_domain_event(
            OrderDenied(
                aggregate_id=order.id,
                order_number=order.order_number,
                denied_by=actor.user_id,
            )
        )
        self._order_repo.transition(order, OrderStatus.DENIED)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.DENIED,
            notes="Order denied",
            old_status=old_status,
            changed_by=actor.user_id,
        )

        log.info("order.denied")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def cancel_order(
        self, order_id: Any, actor: ActorContext, notes: str = ""
    ) -> Order:
        """Cancel an order, restoring stock if it was ``Processing``.

        Cancelling an already-cancelled order is a no-op.  Users may only
        cancel orders they can see.

        Raises:
            OrderNotFound: order does not exist (or is not visible).
            ConcurrencyConflict: order or product changed concurrently.
        """
        order = self._lock_order(order_id, actor)
        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.status == OrderStatus.CANCELLED:
            log.info("order.cancel_noop")
            return self._order_repo.get_by_id(str(order.id))

        old_status = order.status
        restock = old_status == RESTOCK_ON_CANCEL_FROM and order.stock_reserved
        if restock:
            self._restore_stock(order, log)

        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                order_number=order.order_number,
                previous_status=old_status,
                stock_restored=restock,
            )
        )
        self._order_repo.transition(
            order, OrderStatus.CANCELLED, **self._reserved_fields(release=restock)
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            changed_by=actor.user_id,
        )

        log.info("order.cancelled", stock_restored=restock)
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def update_status(
        self,
        order_id: Any,
        new_status: str,
        actor: ActorContext,
        notes: str = "",
    ) -> Order:
        """Overwrite an order's status, applying the stock side effects.

        - Entering ``Processing`` while the order holds no stock checks
          every line and deducts.
        - Entering ``Cancelled`` from ``Processing`` restores stock.
        - Any other change only rewrites the status.

        Raises:
            AdminRoleRequired: actor is not an admin.
            OrderValidationError: *new_status* is not a known status.
            OrderNotFound: order does not exist.
            InsufficientStock: entering ``Processing`` without enough stock.
            ConcurrencyConflict: order or product changed concurrently.
        """
        actor.require_admin("change order status")
        try:
            request = UpdateOrderStatusDTO(status=new_status, notes=notes)
        except PydanticValidationError as exc:
            raise OrderValidationError(
                f"Unknown order status '{new_status}'."
            ) from exc
        new_status = request.status.value

        order = self._lock_order(order_id)
        old_status = order.status
        log = logger.bind(
            order_id=str(order.id),
            current_status=old_status,
            new_status=new_status,
        )

        entering_hold = (
            new_status == OrderStatus.PROCESSING and not order.stock_reserved
        )
        releasing = (
            new_status == OrderStatus.CANCELLED
            and old_status == RESTOCK_ON_CANCEL_FROM
            and order.stock_reserved
        )
        if entering_hold:
            self._deduct_stock(order, log)
        elif releasing:
            self._restore_stock(order, log)

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                order_number=order.order_number,
                old_status=old_status,
                new_status=new_status,
            )
        )
        self._order_repo.transition(
            order,
            new_status,
            **self._reserved_fields(hold=entering_hold, release=releasing),
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=request.notes,
            old_status=old_status,
            changed_by=actor.user_id,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def purge_orders(self, actor: ActorContext, status: Optional[str] = None) -> int:
        """Administrative bulk delete; items and history cascade.

        Stock is not restored for purged orders.

        Raises:
            AdminRoleRequired: actor is not an admin.
            OrderValidationError: *status* is not a known status.
        """
        actor.require_admin("purge orders")
        filters: Dict[str, Any] = {}
        if status:
            if status not in OrderStatus.values:
                raise OrderValidationError(f"Unknown order status '{status}'.")
            filters["status"] = status

        removed = self._order_repo.purge(filters)
        logger.warning(
            "order.purge_completed",
            removed=removed,
            status=status,
            actor_id=actor.user_id,
        )
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, actor: Optional[ActorContext] = None) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist, or *actor* is a
                ``User`` the order does not belong to.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order or not self._can_see(order, actor):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self,
        filters: Optional[Dict[str, Any]] = None,
        actor: Optional[ActorContext] = None,
    ):
        """Orders visible to *actor*: all for admins, own e-mail for users."""
        filters = dict(filters or {})
        if actor is not None and not actor.is_admin:
            if not actor.email:
                return self._order_repo.list(filters).none()
            filters["customer_email__iexact"] = actor.email
        return self._order_repo.list(filters)

    def list_pending_orders(self, actor: ActorContext):
        """Admin review queue: every ``Pending`` order."""
        actor.require_admin("review pending orders")
        return self._order_repo.list({"status": OrderStatus.PENDING})

    # ------------------------------------------------------------------
    # Stock helpers
    # ------------------------------------------------------------------

    def _price_lines(self, items: Iterable[CreateOrderItemDTO]) -> List[Dict[str, Any]]:
        lines = []
        for item in items:
            product = self._product_repo.get_by_id(str(item.product_id))
            if not product:
                raise ProductNotFound(f"Product {item.product_id} not found.")
            lines.append(self._line(item, product, item.quantity))
        return lines

    def _reserve_clamped(
        self, items: List[CreateOrderItemDTO], log
    ) -> List[Dict[str, Any]]:
        products = self._locked_products(item.product_id for item in items)
        lines = []
        for item in items:
            product = products[item.product_id]
            quantity = min(item.quantity, product.stock_quantity)
            if quantity <= 0:
                log.warning("order.line_dropped", product_id=str(product.id))
                continue
            if quantity < item.quantity:
                log.warning(
                    "order.line_clamped",
                    product_id=str(product.id),
                    requested=item.quantity,
                    reserved=quantity,
                )
            self._product_repo.adjust_stock(product, -quantity)
            lines.append(self._line(item, product, quantity))

        if not lines:
            first = products[items[0].product_id]
            raise InsufficientStock.for_product(first, items[0].quantity)
        return lines

    def _deduct_stock(self, order: Order, log) -> None:
        """All-or-nothing: every line is checked before any write."""
        needed = self._quantities(order)
        products = self._locked_products(needed)
        for product_id, quantity in needed.items():
            product = products[product_id]
            if product.stock_quantity < quantity:
                log.warning(
                    "order.stock_insufficient",
                    product_id=str(product_id),
                    requested=quantity,
                    available=product.stock_quantity,
                )
                raise InsufficientStock.for_product(product, quantity)

        for product_id, quantity in needed.items():
            self._product_repo.adjust_stock(products[product_id], -quantity)
            log.info(
                "order.stock_deducted",
                product_id=str(product_id),
                quantity=quantity,
            )

    def _restore_stock(self, order: Order, log) -> None:
        needed = self._quantities(order)
        products = self._locked_products(needed)
        for product_id, quantity in needed.items():
            self._product_repo.adjust_stock(products[product_id], quantity)
            log.info(
                "order.stock_restored",
                product_id=str(product_id),
                quantity=quantity,
            )

    def _locked_products(self, ids: Iterable[Any]) -> Dict[Any, Product]:
        ids = list(ids)
        products = self._product_repo.lock_many(ids)
        for product_id in ids:
            if product_id not in products:
                raise ProductNotFound(f"Product {product_id} not found.")
        return products

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_order(self, order_id: Any, actor: Optional[ActorContext] = None) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order or not self._can_see(order, actor):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _reserved_fields(
        hold: bool = False, release: bool = False
    ) -> Dict[str, Any]:
        if hold:
            return {"stock_reserved": True}
        if release:
            return {"stock_reserved": False}
        return {}

    @staticmethod
    def _can_see(order: Order, actor: Optional[ActorContext]) -> bool:
        if actor is None or actor.is_admin:
            return True
        if not actor.email:
            return False
        return order.customer_email.lower() == actor.email.lower()

    @staticmethod
    def _quantities(order: Order) -> Dict[Any, int]:
        needed: Dict[Any, int] = {}
        for item in order.items.all():
            needed[item.product_id] = needed.get(item.product_id, 0) + item.quantity
        return needed

    @staticmethod
    def _line(
        item: CreateOrderItemDTO, product: Product, quantity: int
    ) -> Dict[str, Any]:
        unit_price = item.unit_price
        if unit_price is None:
            unit_price = product.selling_price
        return {
            "product_id": product.id,
            "quantity": quantity,
            "unit_price": unit_price,
        }
