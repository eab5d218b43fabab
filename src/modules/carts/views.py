"""Cart API views.

Exposes ``CartService`` via HTTP.  Domain errors propagate to the project
exception handler.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.carts.dtos import CartMembershipDTO
from modules.carts.filters import CartFilter
from modules.carts.models import Cart
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import CartDetailSerializer, CartSerializer
from modules.carts.services import CartService
from modules.core.dtos import parse_dto
from modules.orders.repositories.django_repository import OrderDjangoRepository


class CartViewSet(ListModelMixin, GenericViewSet):
    queryset = Cart.objects.all()
    serializer_class = CartSerializer
    filterset_class = CartFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["created_at", "orders_count"]
    ordering = ["-created_at"]
    action_permissions = {
        "list": "carts.view_cart",
        "retrieve": "carts.view_cart",
        "create": "carts.add_cart",
        "orders": "carts.change_cart",
        "recount": "carts.change_cart",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            repository=CartDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )

    def get_queryset(self):
        return self._service.list_carts()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/carts/{pk}/"""
        cart = self._service.get_cart(pk)
        return Response(CartDetailSerializer(cart).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/carts/ opens an empty cart."""
        cart = self._service.open_cart()
        return Response(CartSerializer(cart).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post", "delete"])
    def orders(self, request: Request, pk: str | None = None) -> Response:
        """POST adds ``order_id`` to the cart; DELETE removes it."""
        dto = parse_dto(CartMembershipDTO, request.data)
        if request.method == "DELETE":
            cart = self._service.remove_order(pk, dto.order_id)
        else:
            cart = self._service.add_order(pk, dto.order_id)
        return Response(CartSerializer(cart).data)

    @action(detail=True, methods=["post"])
    def recount(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/carts/{pk}/recount/ repairs the order counter."""
        cart = self._service.recount(pk)
        return Response(CartSerializer(cart).data)
