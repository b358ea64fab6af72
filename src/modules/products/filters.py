import django_filters

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    supplier = django_filters.UUIDFilter(field_name="supplier_id")
    min_price = django_filters.NumberFilter(
        field_name="selling_price", lookup_expr="gte"
    )
    max_price = django_filters.NumberFilter(
        field_name="selling_price", lookup_expr="lte"
    )
    low_stock = django_filters.BooleanFilter(method="filter_low_stock")

    class Meta:
        model = Product
        fields = ["name", "sku", "category", "supplier", "min_price", "max_price"]

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        low = queryset.low_stock()
        return low if value else queryset.exclude(id__in=low.values("id"))
