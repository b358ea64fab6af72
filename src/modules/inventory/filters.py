import django_filters

from modules.inventory.models import Outgoing, OutgoingReason, Purchase


class PurchaseFilter(django_filters.FilterSet):
    product = django_filters.UUIDFilter(field_name="product_id")
    supplier_name = django_filters.CharFilter(
        field_name="supplier_name", lookup_expr="icontains"
    )
    date_from = django_filters.IsoDateTimeFilter(
        field_name="purchase_date", lookup_expr="gte"
    )
    date_to = django_filters.IsoDateTimeFilter(
        field_name="purchase_date", lookup_expr="lte"
    )

    class Meta:
        model = Purchase
        fields = ["product", "supplier_name", "date_from", "date_to"]


class OutgoingFilter(django_filters.FilterSet):
    product = django_filters.UUIDFilter(field_name="product_id")
    reason = django_filters.ChoiceFilter(choices=OutgoingReason.choices)
    order = django_filters.UUIDFilter(field_name="order_id")
    date_from = django_filters.IsoDateTimeFilter(
        field_name="outgoing_date", lookup_expr="gte"
    )
    date_to = django_filters.IsoDateTimeFilter(
        field_name="outgoing_date", lookup_expr="lte"
    )

    class Meta:
        model = Outgoing
        fields = ["product", "reason", "order", "date_from", "date_to"]
