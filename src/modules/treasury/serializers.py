"""Treasury DRF serializers (output only; input is parsed into DTOs)."""

from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from modules.treasury.models import PaymentCard, TreasuryAccount, TreasuryMovement


class TreasuryAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = TreasuryAccount
        fields = ["currency", "current_value", "cash_amount", "card_amount", "updated_at"]
        read_only_fields = fields


class TreasuryMovementSerializer(serializers.ModelSerializer):
    currency = serializers.CharField(source="account.currency", read_only=True)

    class Meta:
        model = TreasuryMovement
        fields = [
            "id",
            "currency",
            "kind",
            "subaccount",
            "amount",
            "balance_after",
            "reference",
            "notes",
            "user_id",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCardSerializer(serializers.ModelSerializer):
    masked_number = serializers.CharField(read_only=True)
    status = serializers.SerializerMethodField()

    class Meta:
        model = PaymentCard
        fields = ["id", "label", "masked_number", "exp_date", "status", "created_at"]
        read_only_fields = fields

    def get_status(self, card: PaymentCard) -> str:
        return card.status_on(timezone.localdate())
