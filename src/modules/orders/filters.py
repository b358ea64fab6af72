import django_filters
from django.db.models import Q

from modules.orders.constants import OrderStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    customer_email = django_filters.CharFilter(
        field_name="customer_email", lookup_expr="iexact"
    )
    start_date = django_filters.DateFilter(
        field_name="order_date", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(
        field_name="order_date", lookup_expr="date__lte"
    )
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "search",
            "status",
            "customer_email",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]

    def filter_search(self, queryset, name, value):
        """Match the order number, customer name or customer e-mail."""
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(customer_name__icontains=value)
            | Q(customer_email__icontains=value)
        )
