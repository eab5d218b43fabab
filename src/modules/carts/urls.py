"""Cart URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.carts.views import CartViewSet

router = DefaultRouter(trailing_slash=True)
router.register("carts", CartViewSet, basename="cart")

urlpatterns = router.urls
