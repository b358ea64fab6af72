import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.authorization import ActorContext
from modules.core.exceptions import AdminRoleRequired
from modules.core.permissions import IsAdminRole
from modules.core.serializers import ActivitySerializer, DashboardStatsSerializer
from modules.core.services import DashboardService
from modules.inventory.repositories.django_repository import (
    OutgoingDjangoRepository,
    PurchaseDjangoRepository,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.suppliers.repositories.django_repository import SupplierDjangoRepository

logger = structlog.get_logger(__name__)


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def _probe(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except Exception as exc:
        logger.error("health_check.probe_failed", probe=name, error=str(exc))
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness probe covering the database and the cache."""
    services = {
        "database": _probe("database", _check_database),
        "cache": _probe("cache", _check_cache),
    }
    healthy = all(s["status"] == "up" for s in services.values())

    logger.info(
        "health_check.completed", status="healthy" if healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """Returns the actor context the services will see for this request."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        actor = ActorContext.from_request(request)
        return Response(
            {
                "user_id": actor.user_id,
                "role": actor.role,
                "email": actor.email,
                "name": actor.name,
            }
        )


class DashboardView(APIView):
    """GET /api/v1/dashboard/ (admin overview)."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = DashboardService(
            product_repository=ProductDjangoRepository(),
            order_repository=OrderDjangoRepository(),
            supplier_repository=SupplierDjangoRepository(),
            purchase_repository=PurchaseDjangoRepository(),
            outgoing_repository=OutgoingDjangoRepository(),
        )

    def get(self, request: Request) -> Response:
        try:
            overview = self._service.overview(ActorContext.from_request(request))
        except AdminRoleRequired as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)

        return Response(
            {
                "stats": DashboardStatsSerializer(overview["stats"]).data,
                "recent_orders": OrderListSerializer(
                    overview["recent_orders"], many=True
                ).data,
                "low_stock": ProductSerializer(overview["low_stock"], many=True).data,
                "recent_activity": ActivitySerializer(
                    overview["recent_activity"], many=True
                ).data,
            }
        )
