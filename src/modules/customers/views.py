"""Customer API views.

Exposes the ``CustomerService`` via HTTP using DRF ViewSets.  Domain
errors propagate to the project exception handler.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.dtos import parse_dto
from modules.customers.dtos import CreateCustomerDTO, UpdateCustomerDTO
from modules.customers.filters import CustomerFilter
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import CustomerSerializer
from modules.customers.services import CustomerService


class CustomerViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for Customer operations.

    Does **not** extend ``ModelViewSet``: writes go through the service.
    """

    filterset_class = CustomerFilter
    search_fields = ["name", "phone", "email"]
    ordering_fields = ["name", "created_at"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    action_permissions = {
        "list": "customers.view_customer",
        "retrieve": "customers.view_customer",
        "create": "customers.add_customer",
        "partial_update": "customers.change_customer",
        "destroy": "customers.change_customer",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CustomerService(repository=CustomerDjangoRepository())

    def get_queryset(self):
        return self._service.list_customers()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/customers/{pk}/"""
        customer = self._service.get_customer(pk)
        return Response(CustomerSerializer(customer).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/customers/"""
        dto = parse_dto(CreateCustomerDTO, request.data)
        customer = self._service.create_customer(dto)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/customers/{pk}/"""
        dto = parse_dto(UpdateCustomerDTO, request.data)
        customer = self._service.update_customer(pk, dto)
        return Response(CustomerSerializer(customer).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/customers/{pk}/ deactivates the account."""
        self._service.deactivate_customer(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
