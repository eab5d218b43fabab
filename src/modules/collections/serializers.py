"""Collection DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.collections.models import Collection
from modules.orders.serializers import OrderListSerializer


class CollectionSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    status_name = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Collection
        fields = [
            "id",
            "customer_id",
            "customer_name",
            "status",
            "status_name",
            "prepaid_value",
            "total",
            "created_at",
        ]
        read_only_fields = fields


class CollectionDetailSerializer(CollectionSerializer):
    orders = OrderListSerializer(many=True, read_only=True)

    class Meta(CollectionSerializer.Meta):
        fields = CollectionSerializer.Meta.fields + ["orders"]
        read_only_fields = fields
