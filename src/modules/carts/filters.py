import django_filters

from modules.carts.models import Cart


class CartFilter(django_filters.FilterSet):
    available = django_filters.BooleanFilter(field_name="is_available")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Cart
        fields = ["available", "start_date", "end_date"]
