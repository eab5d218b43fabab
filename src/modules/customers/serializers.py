"""Customer DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    """Read serializer for the Customer resource."""

    class Meta:
        model = Customer
        fields = [
            "id",
            "name",
            "phone",
            "email",
            "city",
            "address",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
