from rest_framework.permissions import SAFE_METHODS, BasePermission

from modules.core.authorization import ActorContext


class IsAdminRole(BasePermission):
    """Grants access only to actors resolved to the ``Admin`` role."""

    message = "Admin role required."

    def has_permission(self, request, view) -> bool:
        return ActorContext.from_request(request).is_admin


class IsAdminRoleOrReadOnly(BasePermission):
    """Reads for any authenticated actor, writes for admins only."""

    message = "Admin role required."

    def has_permission(self, request, view) -> bool:
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return ActorContext.from_request(request).is_admin
