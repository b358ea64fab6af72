from __future__ import annotations

from rest_framework import serializers

from modules.inventory.models import Outgoing, Purchase


class PurchaseSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Purchase
        fields = [
            "id",
            "product",
            "product_name",
            "quantity",
            "purchase_price",
            "total_amount",
            "supplier_name",
            "purchase_date",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OutgoingSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    order_number = serializers.CharField(
        source="order.order_number", read_only=True, default=None
    )

    class Meta:
        model = Outgoing
        fields = [
            "id",
            "product",
            "product_name",
            "quantity",
            "reason",
            "outgoing_price",
            "total_amount",
            "recipient",
            "order",
            "order_number",
            "outgoing_date",
            "notes",
            "created_at",
        ]
        read_only_fields = fields
