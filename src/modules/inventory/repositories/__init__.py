"""Inventory ledger repositories package."""

from modules.inventory.repositories.django_repository import (
    OutgoingDjangoRepository,
    PurchaseDjangoRepository,
)
from modules.inventory.repositories.interfaces import (
    IOutgoingRepository,
    IPurchaseRepository,
)

__all__ = [
    "IOutgoingRepository",
    "IPurchaseRepository",
    "OutgoingDjangoRepository",
    "PurchaseDjangoRepository",
]
