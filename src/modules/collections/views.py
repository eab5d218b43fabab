"""Collection API views.

Every read recomputes the cached status before serializing it.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.collections.models import Collection
from modules.collections.repositories.django_repository import CollectionDjangoRepository
from modules.collections.serializers import CollectionDetailSerializer, CollectionSerializer
from modules.collections.services import CollectionService
from modules.core.exceptions import ValidationError
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer


class CollectionViewSet(GenericViewSet):
    queryset = Collection.objects.all()
    serializer_class = CollectionSerializer
    action_permissions = {
        "list": "collections.view_collection",
        "retrieve": "collections.view_collection",
        "available": "collections.view_collection",
        "send_all": "collections.send_to_delivery",
        "send_order": "collections.send_to_delivery",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CollectionService(
            repository=CollectionDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/collections/?customer=<id>"""
        collections = self._service.list_collections(request.query_params.get("customer"))
        status_filter = request.query_params.get("status")
        if status_filter:
            collections = [c for c in collections if str(c.status) == status_filter]
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(collections, request)
        return paginator.get_paginated_response(CollectionSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/collections/{pk}/"""
        collection = self._service.get_collection(pk)
        return Response(CollectionDetailSerializer(collection).data)

    @action(detail=True, methods=["post"], url_path="send-all")
    def send_all(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/collections/{pk}/send-all/"""
        collection = self._service.send_to_delivery(pk)
        return Response(CollectionSerializer(collection).data)

    @action(detail=True, methods=["post"], url_path=r"orders/(?P<order_id>[^/.]+)/send")
    def send_order(
        self, request: Request, pk: str | None = None, order_id: str | None = None
    ) -> Response:
        """POST /api/v1/collections/{pk}/orders/{order_id}/send/"""
        order = self._service.send_one_to_delivery(pk, order_id, user_id=request.user.pk)
        return Response(OrderListSerializer(order).data)

    @action(detail=False, methods=["get"])
    def available(self, request: Request) -> Response:
        """GET /api/v1/collections/available/?customer=<id>"""
        customer_id = request.query_params.get("customer")
        if not customer_id:
            raise ValidationError("Query parameter 'customer' is required.", attr="customer")
        collections = self._service.available_for_customer(customer_id)
        return Response(CollectionSerializer(collections, many=True).data)
