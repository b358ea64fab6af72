from rest_framework import serializers


class DashboardStatsSerializer(serializers.Serializer):
    total_products = serializers.IntegerField()
    total_orders = serializers.IntegerField()
    total_suppliers = serializers.IntegerField()
    total_purchases = serializers.IntegerField()
    total_outgoings = serializers.IntegerField()
    pending_orders = serializers.IntegerField()
    low_stock_products = serializers.IntegerField()
    total_inventory_value = serializers.DecimalField(max_digits=20, decimal_places=2)


class ActivitySerializer(serializers.Serializer):
    type = serializers.CharField()
    date = serializers.DateTimeField()
    description = serializers.CharField()
