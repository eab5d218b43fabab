"""Order DRF serializers for API output.

Input is parsed into Pydantic DTOs (``dtos.py``); these serializers only
render the Order aggregate.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Invoice, Order, OrderDetail, OrderPositionHistory


class OrderDetailSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderDetail
        fields = [
            "title",
            "color",
            "size",
            "product_link",
            "image_url",
            "description",
            "original_price",
            "local_price",
            "commission",
            "total",
            "deposit_amount",
            "prepaid_value",
            "city_id",
            "area_id",
            "payment_by",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = [
            "invoice_number",
            "item_price",
            "quantity",
            "total_amount",
            "payment_method",
            "purchase_method",
            "discount_amount",
            "expenses_amount",
            "expenses_notes",
            "cash_amount",
            "card_paid_amount",
            "amount_paid",
            "cart_id",
            "card_id",
            "settled_at",
        ]
        read_only_fields = fields


class PositionHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order position history records."""

    class Meta:
        model = OrderPositionHistory
        fields = [
            "id",
            "old_position",
            "new_position",
            "notes",
            "user_id",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for an order with detail, invoice and history."""

    position_name = serializers.CharField(source="get_position_display", read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    detail = OrderDetailSerializer(read_only=True)
    invoice = InvoiceSerializer(read_only=True)
    position_history = PositionHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "customer_name",
            "position",
            "position_name",
            "cart_id",
            "card_id",
            "box_id",
            "collection_id",
            "is_archived",
            "notes",
            "created_at",
            "updated_at",
            "detail",
            "invoice",
            "position_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no history)."""

    position_name = serializers.CharField(source="get_position_display", read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    title = serializers.CharField(source="detail.title", read_only=True, default="")
    total_amount = serializers.DecimalField(
        source="invoice.total_amount",
        max_digits=12,
        decimal_places=2,
        read_only=True,
        default=None,
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "customer_name",
            "title",
            "position",
            "position_name",
            "total_amount",
            "is_archived",
            "created_at",
        ]
        read_only_fields = fields
