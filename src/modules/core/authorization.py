"""Actor context passed explicitly into every service call.

The role that drives order workflows (immediate vs. deferred stock
deduction, who may accept/deny orders) is resolved once per request from
the authenticated user and handed to the service layer as an immutable
``ActorContext``; services do not read it from ambient state.

Role resolution:
- superusers, staff users and members of the ``Admin`` group: ``Admin``
- every other authenticated user: ``User``
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from django.db import models

from modules.core.exceptions import AdminRoleRequired

ADMIN_GROUP_NAME = "Admin"


class Role(models.TextChoices):
    ADMIN = "Admin", "Admin"
    USER = "User", "User"


@dataclass(frozen=True)
class ActorContext:
    """Who is performing an operation, and with which role."""

    role: Role
    user_id: Optional[int] = None
    email: str = ""
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self, action: str) -> None:
        """Raise ``AdminRoleRequired`` unless the actor is an admin."""
        if not self.is_admin:
            raise AdminRoleRequired(f"Only admins can {action}.")

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_user(cls, user: Any) -> ActorContext:
        """Build the context for a Django user (anonymous users get ``User``)."""
        if user is None or not getattr(user, "is_authenticated", False):
            return cls(role=Role.USER)

        is_admin = bool(
            getattr(user, "is_superuser", False) or getattr(user, "is_staff", False)
        )
        if not is_admin and hasattr(user, "groups"):
            is_admin = user.groups.filter(name=ADMIN_GROUP_NAME).exists()

        full_name = ""
        if hasattr(user, "get_full_name"):
            full_name = user.get_full_name()
        return cls(
            role=Role.ADMIN if is_admin else Role.USER,
            user_id=getattr(user, "pk", None),
            email=getattr(user, "email", "") or "",
            name=full_name or getattr(user, "username", "") or "",
        )

    @classmethod
    def from_request(cls, request: Any) -> ActorContext:
        return cls.from_user(getattr(request, "user", None))

    @classmethod
    def system(cls) -> ActorContext:
        """Context for management commands and other non-request callers."""
        return cls(role=Role.ADMIN, name="system")
