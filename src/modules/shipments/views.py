"""Shipment and carrier API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.boxes.repositories.django_repository import BoxDjangoRepository
from modules.core.dtos import parse_dto
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.shipments.dtos import AddImageDTO, CreateCarrierDTO, CreateShipmentDTO
from modules.shipments.filters import ShipmentFilter
from modules.shipments.models import Carrier, Shipment
from modules.shipments.repositories.django_repository import ShipmentDjangoRepository
from modules.shipments.serializers import (
    CarrierSerializer,
    ShipmentDetailSerializer,
    ShipmentImageSerializer,
    ShipmentSerializer,
)
from modules.shipments.services import ShipmentService


def _build_service() -> ShipmentService:
    return ShipmentService(
        repository=ShipmentDjangoRepository(),
        box_repository=BoxDjangoRepository(),
        order_repository=OrderDjangoRepository(),
    )


class ShipmentViewSet(ListModelMixin, GenericViewSet):
    queryset = Shipment.objects.all()
    serializer_class = ShipmentSerializer
    filterset_class = ShipmentFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["created_at", "sent_at", "arrived_at", "weight"]
    ordering = ["-created_at"]
    action_permissions = {
        "list": "shipments.view_shipment",
        "retrieve": "shipments.view_shipment",
        "create": "shipments.add_shipment",
        "images": "shipments.change_shipment",
        "send": "shipments.send_shipment",
        "arrive": "shipments.receive_shipment",
        "open_box": "shipments.receive_shipment",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _build_service()

    def get_queryset(self):
        return self._service.list_shipments()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/shipments/{pk}/"""
        shipment = self._service.get_shipment(pk)
        return Response(ShipmentDetailSerializer(shipment).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/shipments/ puts a closed box on a shipment."""
        dto = parse_dto(CreateShipmentDTO, request.data)
        shipment = self._service.create_shipment(dto)
        return Response(ShipmentSerializer(shipment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def send(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/shipments/{pk}/send/"""
        updated = self._service.send_shipment(pk)
        return Response({"orders_updated": updated})

    @action(detail=True, methods=["post"])
    def arrive(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/shipments/{pk}/arrive/"""
        updated = self._service.mark_arrived(pk)
        return Response({"orders_updated": updated})

    @action(detail=True, methods=["post"], url_path="open-box")
    def open_box(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/shipments/{pk}/open-box/"""
        updated = self._service.open_box(pk)
        return Response({"orders_updated": updated})

    @action(detail=True, methods=["post"])
    def images(self, request: Request, pk: str | None = None) -> Response:
        dto = parse_dto(AddImageDTO, request.data)
        image = self._service.add_image(pk, dto.url)
        return Response(ShipmentImageSerializer(image).data, status=status.HTTP_201_CREATED)


class CarrierViewSet(ListModelMixin, GenericViewSet):
    queryset = Carrier.objects.all()
    serializer_class = CarrierSerializer
    pagination_class = None
    action_permissions = {
        "list": "shipments.view_carrier",
        "create": "shipments.add_carrier",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _build_service()

    def get_queryset(self):
        return self._service.list_carriers()

    def create(self, request: Request) -> Response:
        """POST /api/v1/carriers/"""
        dto = parse_dto(CreateCarrierDTO, request.data)
        carrier = self._service.create_carrier(dto.name)
        return Response(CarrierSerializer(carrier).data, status=status.HTTP_201_CREATED)
