"""Exceptions shared across modules.

Module-specific errors live in each module's ``exceptions.py``; these two
are raised by more than one bounded context.
"""

from __future__ import annotations


class ConcurrencyConflict(Exception):
    """A row changed between read and conditional write.

    Raised when an optimistic ``UPDATE ... WHERE version = ?`` matches no
    rows.  The whole operation is rolled back; callers may retry it from
    fresh reads.
    """


class AdminRoleRequired(Exception):
    """The acting user lacks the ``Admin`` role for this operation."""
