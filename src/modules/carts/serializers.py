"""Cart DRF serializers (read-only; writes go through ``CartService``)."""

from __future__ import annotations

from rest_framework import serializers

from modules.carts.models import Cart, PurchaseInvoice
from modules.orders.serializers import OrderListSerializer


class PurchaseInvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseInvoice
        fields = [
            "id",
            "orders_count",
            "subtotal",
            "expenses_total",
            "discount_total",
            "total",
            "created_at",
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    cart_number = serializers.CharField(read_only=True)

    class Meta:
        model = Cart
        fields = [
            "id",
            "cart_number",
            "orders_count",
            "is_available",
            "closed_at",
            "created_at",
        ]
        read_only_fields = fields


class CartDetailSerializer(CartSerializer):
    """Cart with its member orders and, once closed, its purchase invoice."""

    orders = OrderListSerializer(many=True, read_only=True)
    purchase_invoice = serializers.SerializerMethodField()

    class Meta(CartSerializer.Meta):
        fields = CartSerializer.Meta.fields + ["orders", "purchase_invoice"]
        read_only_fields = fields

    def get_purchase_invoice(self, obj: Cart):
        invoice = PurchaseInvoice.objects.filter(cart=obj).first()
        return PurchaseInvoiceSerializer(invoice).data if invoice else None
