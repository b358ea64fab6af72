"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCreated,
    OrderDenied,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            status=event.status,
        )


class OrderAcceptedHandler(IEventHandler[OrderAccepted]):
    def handle(self, event: OrderAccepted) -> None:
        logger.info(
            "order.event.accepted",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderDeniedHandler(IEventHandler[OrderDenied]):
    def handle(self, event: OrderDenied) -> None:
        logger.info(
            "order.event.denied",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            stock_restored=event.stock_restored,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


order_created_handler = OrderCreatedHandler()
order_accepted_handler = OrderAcceptedHandler()
order_denied_handler = OrderDeniedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
