"""Supplier domain exceptions."""

from __future__ import annotations


class SupplierAlreadyExists(Exception):
    """A supplier with the same name already exists."""


class SupplierNotFound(Exception):
    """The requested supplier does not exist."""
