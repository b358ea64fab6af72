"""Admin dashboard: store-wide counters and recent activity.

Read-only aggregation over the module repositories; nothing here writes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List

import structlog
from django.db.models import DecimalField, ExpressionWrapper, F, Sum

from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.core.authorization import ActorContext
    from modules.inventory.repositories.interfaces import (
        IOutgoingRepository,
        IPurchaseRepository,
    )
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.suppliers.repositories.interfaces import ISupplierRepository

logger = structlog.get_logger(__name__)

RECENT_ORDERS_LIMIT = 5
LOW_STOCK_LIMIT = 5
ACTIVITY_PER_KIND = 3
ACTIVITY_LIMIT = 10


class DashboardService:
    """Builds the admin overview from the existing repositories."""

    def __init__(
        self,
        product_repository: IProductRepository,
        order_repository: IOrderRepository,
        supplier_repository: ISupplierRepository,
        purchase_repository: IPurchaseRepository,
        outgoing_repository: IOutgoingRepository,
    ) -> None:
        self._product_repo = product_repository
        self._order_repo = order_repository
        self._supplier_repo = supplier_repository
        self._purchase_repo = purchase_repository
        self._outgoing_repo = outgoing_repository

    def overview(self, actor: ActorContext) -> Dict[str, Any]:
        """Counters, inventory value, recent orders, low stock and activity.

        Raises:
            AdminRoleRequired: actor is not an admin.
        """
        actor.require_admin("view the dashboard")

        products = self._product_repo.list()
        orders = self._order_repo.list()
        low_stock = self._product_repo.low_stock()

        stats = {
            "total_products": products.count(),
            "total_orders": orders.count(),
            "total_suppliers": self._supplier_repo.list().count(),
            "total_purchases": self._purchase_repo.list().count(),
            "total_outgoings": self._outgoing_repo.list().count(),
            "pending_orders": orders.filter(status=OrderStatus.PENDING).count(),
            "low_stock_products": low_stock.count(),
            "total_inventory_value": self._inventory_value(products),
        }
        logger.info(
            "dashboard.overview_built",
            total_orders=stats["total_orders"],
            pending_orders=stats["pending_orders"],
            low_stock_products=stats["low_stock_products"],
        )

        return {
            "stats": stats,
            "recent_orders": list(
                orders.order_by("-order_date", "-id")[:RECENT_ORDERS_LIMIT]
            ),
            "low_stock": list(low_stock[:LOW_STOCK_LIMIT]),
            "recent_activity": self._recent_activity(),
        }

    @staticmethod
    def _inventory_value(products) -> Decimal:
        value = products.aggregate(
            value=Sum(
                ExpressionWrapper(
                    F("stock_quantity") * F("selling_price"),
                    output_field=DecimalField(max_digits=20, decimal_places=2),
                )
            )
        )["value"]
        return value or Decimal("0.00")

    def _recent_activity(self) -> List[Dict[str, Any]]:
        """Latest purchases, outgoings and orders merged newest first."""
        activity: List[Dict[str, Any]] = []

        purchases = self._purchase_repo.list().order_by("-purchase_date")
        for purchase in purchases[:ACTIVITY_PER_KIND]:
            activity.append(
                {
                    "type": "Purchase",
                    "date": purchase.purchase_date,
                    "description": (
                        f"Purchased {purchase.quantity} {purchase.product.name}"
                    ),
                }
            )

        outgoings = self._outgoing_repo.list().order_by("-outgoing_date")
        for outgoing in outgoings[:ACTIVITY_PER_KIND]:
            activity.append(
                {
                    "type": "Outgoing",
                    "date": outgoing.outgoing_date,
                    "description": (
                        f"Outgoing {outgoing.quantity} {outgoing.product.name}"
                        f" - {outgoing.reason}"
                    ),
                }
            )

        orders = self._order_repo.list().order_by("-order_date", "-id")
        for order in orders[:ACTIVITY_PER_KIND]:
            activity.append(
                {
                    "type": "Order",
                    "date": order.order_date,
                    "description": (
                        f"Order {order.order_number} - {order.customer_name}"
                    ),
                }
            )

        activity.sort(key=lambda entry: entry["date"], reverse=True)
        return activity[:ACTIVITY_LIMIT]
