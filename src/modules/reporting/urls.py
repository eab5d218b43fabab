"""Reporting URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.reporting.views import ReportViewSet

router = DefaultRouter(trailing_slash=True)
router.register("reports", ReportViewSet, basename="report")

urlpatterns = router.urls
