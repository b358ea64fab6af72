"""Inventory ledger exceptions.

Stock shortfalls and missing products reuse ``InsufficientStock`` and
``ProductNotFound`` from the products module.
"""


class LedgerEntryNotFound(Exception):
    """The requested purchase or outgoing does not exist."""


class LinkedOrderNotFound(Exception):
    """An outgoing references an order that does not exist."""
