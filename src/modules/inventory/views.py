"""Inventory ledger API views (admin only).

Entries are append-only: list, retrieve and create.  Creating an entry
adjusts the product's stock in the same transaction.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.authorization import ActorContext
from modules.core.exceptions import AdminRoleRequired, ConcurrencyConflict
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdminRole
from modules.inventory.dtos import RecordOutgoingDTO, RecordPurchaseDTO
from modules.inventory.exceptions import LedgerEntryNotFound, LinkedOrderNotFound
from modules.inventory.filters import OutgoingFilter, PurchaseFilter
from modules.inventory.models import Outgoing, Purchase
from modules.inventory.repositories.django_repository import (
    OutgoingDjangoRepository,
    PurchaseDjangoRepository,
)
from modules.inventory.serializers import OutgoingSerializer, PurchaseSerializer
from modules.inventory.services import InventoryService
from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

_PURCHASE_FIELDS = (
    "product_id",
    "quantity",
    "purchase_price",
    "supplier_name",
    "purchase_date",
    "notes",
)
_OUTGOING_FIELDS = (
    "product_id",
    "quantity",
    "reason",
    "outgoing_price",
    "recipient",
    "order_id",
    "outgoing_date",
    "notes",
)


def _payload(data, fields) -> dict:
    return {field: data.get(field) for field in fields if data.get(field) is not None}


def _build_service() -> InventoryService:
    return InventoryService(
        purchase_repository=PurchaseDjangoRepository(),
        outgoing_repository=OutgoingDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


def _error_response(exc: Exception) -> Response:
    """Translate a ledger-write domain exception into an HTTP response."""
    if isinstance(exc, ProductNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, LinkedOrderNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, AdminRoleRequired):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, InsufficientStock):
        return Response(
            {
                "detail": str(exc),
                "product_id": str(exc.product_id),
                "requested": exc.requested,
                "available": exc.available,
            },
            status=status.HTTP_409_CONFLICT,
        )
    return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)


_WRITE_ERRORS = (
    ProductNotFound,
    LinkedOrderNotFound,
    AdminRoleRequired,
    InsufficientStock,
    ConcurrencyConflict,
)


class PurchaseViewSet(ListModelMixin, GenericViewSet):
    queryset = Purchase.objects.all()
    serializer_class = PurchaseSerializer
    permission_classes = [IsAdminRole]
    pagination_class = StandardResultsSetPagination
    filterset_class = PurchaseFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["purchase_date", "total_amount", "quantity"]
    ordering = ["-purchase_date"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _build_service()

    def get_queryset(self):
        return self._service.list_purchases()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/purchases/{pk}/"""
        try:
            purchase = self._service.get_purchase(pk)
        except LedgerEntryNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(PurchaseSerializer(purchase).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/purchases/"""
        try:
            dto = RecordPurchaseDTO(**_payload(request.data, _PURCHASE_FIELDS))
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            purchase = self._service.record_purchase(
                dto, ActorContext.from_request(request)
            )
        except _WRITE_ERRORS as exc:
            return _error_response(exc)

        return Response(
            PurchaseSerializer(purchase).data, status=status.HTTP_201_CREATED
        )


class OutgoingViewSet(ListModelMixin, GenericViewSet):
    queryset = Outgoing.objects.all()
    serializer_class = OutgoingSerializer
    permission_classes = [IsAdminRole]
    pagination_class = StandardResultsSetPagination
    filterset_class = OutgoingFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["outgoing_date", "total_amount", "quantity"]
    ordering = ["-outgoing_date"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _build_service()

    def get_queryset(self):
        return self._service.list_outgoings()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/outgoings/{pk}/"""
        try:
            outgoing = self._service.get_outgoing(pk)
        except LedgerEntryNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(OutgoingSerializer(outgoing).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/outgoings/"""
        try:
            dto = RecordOutgoingDTO(**_payload(request.data, _OUTGOING_FIELDS))
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            outgoing = self._service.record_outgoing(
                dto, ActorContext.from_request(request)
            )
        except _WRITE_ERRORS as exc:
            return _error_response(exc)

        return Response(
            OutgoingSerializer(outgoing).data, status=status.HTTP_201_CREATED
        )
