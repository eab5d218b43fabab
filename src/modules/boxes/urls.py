"""Box URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.boxes.views import BoxViewSet

router = DefaultRouter(trailing_slash=True)
router.register("boxes", BoxViewSet, basename="box")

urlpatterns = router.urls
