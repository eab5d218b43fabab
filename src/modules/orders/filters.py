import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    position = django_filters.NumberFilter(field_name="position")
    customer = django_filters.UUIDFilter(field_name="customer_id")
    collection = django_filters.UUIDFilter(field_name="collection_id")
    cart = django_filters.UUIDFilter(field_name="cart_id")
    box = django_filters.UUIDFilter(field_name="box_id")
    archived = django_filters.BooleanFilter(field_name="is_archived")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(
        field_name="invoice__total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="invoice__total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "position",
            "customer",
            "collection",
            "cart",
            "box",
            "archived",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
