"""Treasury URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.treasury.views import PaymentCardViewSet, TreasuryViewSet

router = DefaultRouter(trailing_slash=True)
router.register("treasury", TreasuryViewSet, basename="treasury")
router.register("payment-cards", PaymentCardViewSet, basename="payment-card")

urlpatterns = router.urls
