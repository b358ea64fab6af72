"""Ledger repository interfaces."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.inventory.models import Outgoing, Purchase


class IPurchaseRepository(IRepository["Purchase"]):
    """Repository contract for purchase entries."""


class IOutgoingRepository(IRepository["Outgoing"]):
    """Repository contract for outgoing entries."""

    @abstractmethod
    def order_exists(self, order_id) -> bool:
        """Whether an outgoing may be linked to *order_id*."""
