"""Shipment DRF serializers (read-only; writes go through ``ShipmentService``)."""

from __future__ import annotations

from rest_framework import serializers

from modules.shipments.models import Carrier, Shipment, ShipmentImage


class CarrierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Carrier
        fields = ["id", "name", "is_active"]
        read_only_fields = fields


class ShipmentImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShipmentImage
        fields = ["id", "url", "created_at"]
        read_only_fields = fields


class ShipmentSerializer(serializers.ModelSerializer):
    box_number = serializers.CharField(source="box.number", read_only=True)
    carrier_name = serializers.CharField(source="carrier.name", read_only=True)
    status_name = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Shipment
        fields = [
            "id",
            "box",
            "box_number",
            "carrier",
            "carrier_name",
            "sender_name",
            "weight",
            "status",
            "status_name",
            "carrier_reference",
            "carrier_sync_error",
            "sent_at",
            "arrived_at",
            "created_at",
        ]
        read_only_fields = fields


class ShipmentDetailSerializer(ShipmentSerializer):
    images = ShipmentImageSerializer(many=True, read_only=True)

    class Meta(ShipmentSerializer.Meta):
        fields = ShipmentSerializer.Meta.fields + ["images"]
        read_only_fields = fields
