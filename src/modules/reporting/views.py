"""Reporting API views (read-only)."""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.reporting.services import ReportingService

REPORT_PERMISSION = "orders.view_reports"


class ReportViewSet(ViewSet):
    action_permissions = {
        "orders_by_position": REPORT_PERMISSION,
        "statistics": REPORT_PERMISSION,
        "financial": REPORT_PERMISSION,
        "payment_methods": REPORT_PERMISSION,
        "purchase_methods": REPORT_PERMISSION,
        "cart": REPORT_PERMISSION,
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        self._service = ReportingService(
            order_repository=order_repository,
            cart_service=CartService(CartDjangoRepository(), order_repository),
        )

    @action(detail=False, methods=["get"], url_path="orders-by-position")
    def orders_by_position(self, request: Request) -> Response:
        rows = self._service.orders_by_position()
        return Response([row.model_dump(mode="json") for row in rows])

    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        return Response(self._service.statistics_summary().model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def financial(self, request: Request) -> Response:
        return Response(self._service.financial_summary().model_dump(mode="json"))

    @action(detail=False, methods=["get"], url_path="payment-methods")
    def payment_methods(self, request: Request) -> Response:
        rows = self._service.payment_method_breakdown()
        return Response([row.model_dump(mode="json") for row in rows])

    @action(detail=False, methods=["get"], url_path="purchase-methods")
    def purchase_methods(self, request: Request) -> Response:
        rows = self._service.purchase_method_breakdown()
        return Response([row.model_dump(mode="json") for row in rows])

    @action(detail=False, methods=["get"], url_path=r"carts/(?P<cart_id>[^/.]+)")
    def cart(self, request: Request, cart_id: str | None = None) -> Response:
        """GET /api/v1/reports/carts/{cart_id}/"""
        return Response(self._service.cart_summary(cart_id).model_dump(mode="json"))
