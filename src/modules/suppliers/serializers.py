from __future__ import annotations

from rest_framework import serializers

from modules.suppliers.models import Supplier


class SupplierSerializer(serializers.ModelSerializer):
    """Read serializer for the Supplier resource."""

    class Meta:
        model = Supplier
        fields = [
            "id",
            "name",
            "category",
            "contact_person_name",
            "phone_number",
            "email_address",
            "physical_address",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
