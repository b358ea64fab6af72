"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.authorization import ActorContext
from modules.core.exceptions import AdminRoleRequired, ConcurrencyConflict
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdminRole
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    IdempotencyKeyConflict,
    InsufficientStock,
    InvalidOrderStatus,
    OrderNotFound,
    OrderValidationError,
    ProductNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    PurgeOrdersSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository

_ADMIN_ACTIONS = {"partial_update", "accept", "deny", "pending", "purge"}

_DOMAIN_ERRORS = (
    OrderNotFound,
    ProductNotFound,
    InsufficientStock,
    InvalidOrderStatus,
    OrderValidationError,
    ConcurrencyConflict,
    AdminRoleRequired,
    IdempotencyKeyConflict,
)


def _error_response(exc: Exception) -> Response:
    """Translate an order domain exception into an HTTP response."""
    if isinstance(exc, (OrderNotFound, ProductNotFound)):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, InsufficientStock):
        return Response(
            {
                "detail": str(exc),
                "product_id": str(exc.product_id),
                "product_name": exc.product_name,
                "requested": exc.requested,
                "available": exc.available,
            },
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, (ConcurrencyConflict, IdempotencyKeyConflict)):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, AdminRoleRequired):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories.
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["order_date", "total_amount", "status", "order_number"]
    ordering = ["-order_date", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def get_permissions(self):
        if self.action in _ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdminRole()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttle scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "pending"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _actor(self, request: Request) -> ActorContext:
        return ActorContext.from_request(request)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header: a repeated
        key returns the order created the first time, or 409 when the key
        belongs to another user.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        try:
            dto = CreateOrderDTO(
                items=[
                    CreateOrderItemDTO(
                        product_id=item["product_id"],
                        quantity=item["quantity"],
                        unit_price=item.get("unit_price"),
                    )
                    for item in data["items"]
                ],
                customer_name=data.get("customer_name", ""),
                customer_email=data.get("customer_email", ""),
                customer_phone=data.get("customer_phone", ""),
                shipping_address=data.get("shipping_address", ""),
                notes=data.get("notes", ""),
                order_date=data.get("order_date"),
                idempotency_key=request.headers.get("Idempotency-Key") or None,
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = self._service.create_order(dto, self._actor(request))
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders(actor=self._actor(self.request))

    def _paginated(self, request: Request, queryset) -> Response:
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Admins see every order; users see the orders placed under their
        e-mail.  Search (``?search=``), status, date range and total range
        are handled by ``OrderFilter``; ordering by ``OrderingFilter``.
        """
        return self._paginated(request, self.filter_queryset(self.get_queryset()))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, self._actor(request))
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"])
    def pending(self, request: Request) -> Response:
        """GET /api/v1/orders/pending/ (admin review queue)."""
        try:
            queryset = self._service.list_pending_orders(self._actor(request))
        except AdminRoleRequired as exc:
            return _error_response(exc)
        queryset = OrderingFilter().filter_queryset(request, queryset, self)
        return self._paginated(request, queryset)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/ with ``{"status": ..., "notes": ...}``."""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_status(
                order_id=pk,
                new_status=serializer.validated_data["status"],
                actor=self._actor(request),
                notes=serializer.validated_data.get("notes", ""),
            )
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def accept(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/accept/"""
        try:
            order = self._service.accept_order(pk, self._actor(request))
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def deny(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/deny/"""
        try:
            order = self._service.deny_order(pk, self._actor(request))
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Restores stock when the order was ``Processing``; repeating the
        call on a cancelled order is a no-op.
        """
        try:
            order = self._service.cancel_order(
                pk,
                self._actor(request),
                notes=request.data.get("notes", ""),
            )
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["post"])
    def purge(self, request: Request) -> Response:
        """POST /api/v1/orders/purge/ with optional ``{"status": ...}``."""
        serializer = PurgeOrdersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            removed = self._service.purge_orders(
                self._actor(request),
                status=serializer.validated_data.get("status"),
            )
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response({"deleted": removed})
