"""Inventory ledger URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.inventory.views import OutgoingViewSet, PurchaseViewSet

router = DefaultRouter(trailing_slash=True)
router.register("purchases", PurchaseViewSet, basename="purchase")
router.register("outgoings", OutgoingViewSet, basename="outgoing")

urlpatterns = router.urls
