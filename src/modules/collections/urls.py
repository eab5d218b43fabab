"""Collection URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.collections.views import CollectionViewSet

router = DefaultRouter(trailing_slash=True)
router.register("collections", CollectionViewSet, basename="collection")

urlpatterns = router.urls
