"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to the project exception handler, which renders the
standard error body; the views never catch them.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.boxes.repositories.django_repository import BoxDjangoRepository
from modules.boxes.services import BoxService
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.collections.repositories.django_repository import CollectionDjangoRepository
from modules.collections.services import CollectionService
from modules.core.dtos import parse_dto
from modules.core.pagination import StandardResultsSetPagination
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService
from modules.orders.dtos import (
    AdvancePositionDTO,
    CancelOrderDTO,
    ConfirmPurchaseDTO,
    CreateOrderDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.treasury.repositories.django_repository import (
    PaymentCardDjangoRepository,
    TreasuryDjangoRepository,
)
from modules.treasury.services import PaymentCardService, TreasuryLedger


def build_order_service() -> OrderService:
    order_repository = OrderDjangoRepository()
    return OrderService(
        order_repository=order_repository,
        customer_service=CustomerService(CustomerDjangoRepository()),
        collection_service=CollectionService(CollectionDjangoRepository(), order_repository),
        cart_service=CartService(CartDjangoRepository(), order_repository),
        box_service=BoxService(BoxDjangoRepository(), order_repository),
        ledger=TreasuryLedger(TreasuryDjangoRepository()),
        payment_cards=PaymentCardService(PaymentCardDjangoRepository()),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM writes go through the
    service/repository layer.
    """

    queryset = Order.objects.all()
    serializer_class = OrderListSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name", "customer__phone", "detail__title"]
    ordering_fields = ["created_at", "position", "invoice__total_amount"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    action_permissions = {
        "list": "orders.view_order",
        "retrieve": "orders.view_order",
        "create": "orders.add_order",
        "partial_update": "orders.advance_position",
        "confirm_purchase": "orders.confirm_purchase",
        "cancel": "orders.cancel_order",
        "archive": "orders.archive_order",
        "destroy": "orders.delete_order",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        dto = parse_dto(CreateOrderDTO, request.data)
        order = self._service.create_order(dto, user_id=request.user.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (position, customer, containers, dates, totals) is handled
        by ``OrderFilter``; ordering by ``OrderingFilter``.  Results are
        paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Position changes
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Administrative position change.  Cancellations are **not** allowed
        via this endpoint; use ``POST /orders/{id}/cancel/`` instead.
        """
        dto = parse_dto(AdvancePositionDTO, request.data)
        order = self._service.advance_position(
            pk, dto.position, notes=dto.notes, user_id=request.user.pk
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="confirm-purchase")
    def confirm_purchase(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm-purchase/"""
        dto = parse_dto(ConfirmPurchaseDTO, request.data)
        order = self._service.confirm_purchase(pk, dto, user_id=request.user.pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        dto = parse_dto(CancelOrderDTO, request.data)
        order = self._service.cancel_order(pk, notes=dto.notes, user_id=request.user.pk)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def archive(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/archive/"""
        order = self._service.archive_order(pk, user_id=request.user.pk)
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/"""
        self._service.delete_order(pk, user_id=request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
