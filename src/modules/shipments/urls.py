"""Shipment URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.shipments.views import CarrierViewSet, ShipmentViewSet

router = DefaultRouter(trailing_slash=True)
router.register("shipments", ShipmentViewSet, basename="shipment")
router.register("carriers", CarrierViewSet, basename="carrier")

urlpatterns = router.urls
