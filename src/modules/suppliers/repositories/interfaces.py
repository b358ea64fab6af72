"""Supplier repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.suppliers.models import Supplier


class ISupplierRepository(IRepository["Supplier"]):
    """Repository contract for suppliers."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Supplier]:
        """Retrieve a supplier by its (case-insensitive) name."""

    @abstractmethod
    def first_active_for_category(self, category: str) -> Optional[Supplier]:
        """Return the first active supplier serving *category*, by name."""
