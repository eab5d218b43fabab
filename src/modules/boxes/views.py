"""Box API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.boxes.dtos import BoxMembershipDTO, CreateBoxDTO
from modules.boxes.filters import BoxFilter
from modules.boxes.models import Box
from modules.boxes.repositories.django_repository import BoxDjangoRepository
from modules.boxes.serializers import BoxDetailSerializer, BoxSerializer
from modules.boxes.services import BoxService
from modules.core.dtos import parse_dto
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer


class BoxViewSet(ListModelMixin, GenericViewSet):
    queryset = Box.objects.all()
    serializer_class = BoxSerializer
    filterset_class = BoxFilter
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ["number"]
    ordering_fields = ["created_at", "number", "orders_count"]
    ordering = ["-created_at"]
    action_permissions = {
        "list": "boxes.view_box",
        "retrieve": "boxes.view_box",
        "available_orders": "boxes.view_box",
        "create": "boxes.add_box",
        "close": "boxes.close_box",
        "orders": "boxes.change_box",
        "recount": "boxes.change_box",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = BoxService(
            repository=BoxDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )

    def get_queryset(self):
        return self._service.list_boxes()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/boxes/{pk}/"""
        box = self._service.get_box(pk)
        return Response(BoxDetailSerializer(box).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/boxes/"""
        dto = parse_dto(CreateBoxDTO, request.data)
        box = self._service.create_box(dto.number)
        return Response(BoxSerializer(box).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def close(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/boxes/{pk}/close/"""
        box = self._service.close_box(pk)
        return Response(BoxSerializer(box).data)

    @action(detail=True, methods=["post", "delete"])
    def orders(self, request: Request, pk: str | None = None) -> Response:
        """POST adds ``order_id`` to the box; DELETE removes it."""
        dto = parse_dto(BoxMembershipDTO, request.data)
        if request.method == "DELETE":
            box = self._service.remove_order(pk, dto.order_id)
        else:
            box = self._service.add_order(pk, dto.order_id)
        return Response(BoxSerializer(box).data)

    @action(detail=True, methods=["post"])
    def recount(self, request: Request, pk: str | None = None) -> Response:
        box = self._service.recount(pk)
        return Response(BoxSerializer(box).data)

    @action(detail=False, methods=["get"], url_path="available-orders")
    def available_orders(self, request: Request) -> Response:
        """GET /api/v1/boxes/available-orders/ lists purchased, unboxed orders."""
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(self._service.available_orders(), request)
        return paginator.get_paginated_response(OrderListSerializer(page, many=True).data)
