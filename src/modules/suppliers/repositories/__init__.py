"""Supplier repositories package."""

from modules.suppliers.repositories.django_repository import SupplierDjangoRepository
from modules.suppliers.repositories.interfaces import ISupplierRepository

__all__ = ["ISupplierRepository", "SupplierDjangoRepository"]
