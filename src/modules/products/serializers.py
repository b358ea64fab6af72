"""Product DRF serializers for API output.

Business logic lives in the Service Layer, which receives Pydantic DTOs
from ``dtos.py``; these serializers only shape responses.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    supplier_name = serializers.CharField(
        source="supplier.name", read_only=True, default=None
    )
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "category",
            "stock_quantity",
            "cost_price",
            "selling_price",
            "minimum_stock_level",
            "is_low_stock",
            "supplier",
            "supplier_name",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductPriceSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    price = serializers.DecimalField(max_digits=18, decimal_places=2)
    stock = serializers.IntegerField()
