"""Box DRF serializers (read-only; writes go through ``BoxService``)."""

from __future__ import annotations

from rest_framework import serializers

from modules.boxes.models import Box
from modules.orders.serializers import OrderListSerializer


class BoxSerializer(serializers.ModelSerializer):
    class Meta:
        model = Box
        fields = [
            "id",
            "number",
            "orders_count",
            "is_available",
            "closed_at",
            "created_at",
        ]
        read_only_fields = fields


class BoxDetailSerializer(BoxSerializer):
    orders = OrderListSerializer(many=True, read_only=True)

    class Meta(BoxSerializer.Meta):
        fields = BoxSerializer.Meta.fields + ["orders"]
        read_only_fields = fields
