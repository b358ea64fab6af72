"""Supplier API views (admin only)."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdminRole
from modules.suppliers.dtos import CreateSupplierDTO, UpdateSupplierDTO
from modules.suppliers.exceptions import SupplierAlreadyExists, SupplierNotFound
from modules.suppliers.filters import SupplierFilter
from modules.suppliers.models import Supplier
from modules.suppliers.repositories.django_repository import SupplierDjangoRepository
from modules.suppliers.serializers import SupplierSerializer
from modules.suppliers.services import SupplierService

_FIELDS = (
    "name",
    "category",
    "contact_person_name",
    "phone_number",
    "email_address",
    "physical_address",
    "is_active",
)


def _payload(data) -> dict:
    return {field: data.get(field) for field in _FIELDS if field in data}


class SupplierViewSet(ListModelMixin, GenericViewSet):
    """CRUD for suppliers; all ORM access goes through ``SupplierService``."""

    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer
    permission_classes = [IsAdminRole]
    pagination_class = StandardResultsSetPagination
    filterset_class = SupplierFilter
    search_fields = ["name", "category", "contact_person_name"]
    ordering_fields = ["name", "category", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = SupplierService(repository=SupplierDjangoRepository())

    def get_queryset(self):
        return self._service.list_suppliers()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/suppliers/{pk}/"""
        try:
            supplier = self._service.get_supplier(pk)
        except SupplierNotFound:
            return Response(
                {"detail": "Supplier not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(SupplierSerializer(supplier).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/suppliers/"""
        try:
            dto = CreateSupplierDTO(**_payload(request.data))
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            supplier = self._service.create_supplier(dto)
        except SupplierAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(
            SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/suppliers/{pk}/"""
        try:
            dto = UpdateSupplierDTO(**_payload(request.data))
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            supplier = self._service.update_supplier(pk, dto)
        except SupplierNotFound:
            return Response(
                {"detail": "Supplier not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except SupplierAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(SupplierSerializer(supplier).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/suppliers/{pk}/"""
        try:
            self._service.delete_supplier(pk)
        except SupplierNotFound:
            return Response(
                {"detail": "Supplier not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
