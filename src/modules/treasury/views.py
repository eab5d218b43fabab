"""Treasury API views.

Every write goes through ``TreasuryLedger``; there is no endpoint that
overwrites a balance directly.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.dtos import parse_dto
from modules.core.pagination import StandardResultsSetPagination
from modules.treasury.dtos import (
    ConvertDTO,
    CreatePaymentCardDTO,
    MovementDTO,
    RedistributeDTO,
    SetBalanceDTO,
    UpdatePaymentCardDTO,
)
from modules.treasury.filters import TreasuryMovementFilter
from modules.treasury.models import PaymentCard, TreasuryMovement
from modules.treasury.repositories.django_repository import (
    PaymentCardDjangoRepository,
    TreasuryDjangoRepository,
)
from modules.treasury.serializers import (
    PaymentCardSerializer,
    TreasuryAccountSerializer,
    TreasuryMovementSerializer,
)
from modules.treasury.services import PaymentCardService, TreasuryLedger


class TreasuryViewSet(GenericViewSet):
    """Balances, journal and ledger operations."""

    queryset = TreasuryMovement.objects.all()
    serializer_class = TreasuryMovementSerializer
    filterset_class = TreasuryMovementFilter
    filter_backends = [DjangoFilterBackend]
    throttle_scope = "treasury"
    action_permissions = {
        "list": "treasury.view_treasuryaccount",
        "history": "treasury.view_treasurymovement",
        "debit": "treasury.debit_treasury",
        "credit": "treasury.credit_treasury",
        "balance": "treasury.change_treasuryaccount",
        "convert": "treasury.convert_treasury",
        "redistribute": "treasury.redistribute_treasury",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._ledger = TreasuryLedger(repository=TreasuryDjangoRepository())

    def get_queryset(self):
        return self._ledger.history()

    def list(self, request: Request) -> Response:
        """GET /api/v1/treasury/"""
        return Response(self._ledger.balances().model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def history(self, request: Request) -> Response:
        """GET /api/v1/treasury/history/"""
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = TreasuryMovementSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @action(detail=False, methods=["post"])
    def debit(self, request: Request) -> Response:
        """POST /api/v1/treasury/debit/"""
        dto = parse_dto(MovementDTO, request.data)
        account = self._ledger.debit(
            dto.currency, dto.subaccount, dto.amount, dto.reference, dto.notes, request.user.pk
        )
        return Response(TreasuryAccountSerializer(account).data)

    @action(detail=False, methods=["post"])
    def credit(self, request: Request) -> Response:
        """POST /api/v1/treasury/credit/ (top-up)"""
        dto = parse_dto(MovementDTO, request.data)
        account = self._ledger.credit(
            dto.currency, dto.subaccount, dto.amount, dto.reference, dto.notes, request.user.pk
        )
        return Response(TreasuryAccountSerializer(account).data)

    @action(detail=False, methods=["put"])
    def balance(self, request: Request) -> Response:
        """PUT /api/v1/treasury/balance/"""
        dto = parse_dto(SetBalanceDTO, request.data)
        account = self._ledger.set_balance(
            dto.currency, dto.subaccount, dto.value, dto.notes, request.user.pk
        )
        return Response(TreasuryAccountSerializer(account).data)

    @action(detail=False, methods=["post"])
    def convert(self, request: Request) -> Response:
        """POST /api/v1/treasury/convert/"""
        dto = parse_dto(ConvertDTO, request.data)
        balances = self._ledger.convert(dto.amount_local, dto.rate, dto.notes, request.user.pk)
        return Response(balances.model_dump(mode="json"))

    @action(detail=False, methods=["post"])
    def redistribute(self, request: Request) -> Response:
        """POST /api/v1/treasury/redistribute/"""
        dto = parse_dto(RedistributeDTO, request.data)
        account = self._ledger.redistribute(dto.card_amount, dto.cash_amount, request.user.pk)
        return Response(TreasuryAccountSerializer(account).data)


class PaymentCardViewSet(ListModelMixin, GenericViewSet):
    """Register of purchasing cards; writes go through the service."""

    queryset = PaymentCard.objects.all()
    serializer_class = PaymentCardSerializer
    action_permissions = {
        "list": "treasury.view_paymentcard",
        "retrieve": "treasury.view_paymentcard",
        "create": "treasury.add_paymentcard",
        "partial_update": "treasury.change_paymentcard",
        "destroy": "treasury.delete_paymentcard",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PaymentCardService(repository=PaymentCardDjangoRepository())

    def get_queryset(self):
        return self._service.list_cards()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/payment-cards/{pk}/"""
        return Response(PaymentCardSerializer(self._service.get_card(pk)).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/payment-cards/"""
        dto = parse_dto(CreatePaymentCardDTO, request.data)
        card = self._service.create_card(dto)
        return Response(PaymentCardSerializer(card).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/payment-cards/{pk}/"""
        dto = parse_dto(UpdatePaymentCardDTO, request.data)
        return Response(PaymentCardSerializer(self._service.update_card(pk, dto)).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/payment-cards/{pk}/"""
        self._service.delete_card(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
