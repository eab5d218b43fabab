import django_filters

from modules.shipments.models import Shipment


class ShipmentFilter(django_filters.FilterSet):
    status = django_filters.NumberFilter(field_name="status")
    carrier = django_filters.UUIDFilter(field_name="carrier_id")
    box_number = django_filters.CharFilter(field_name="box__number", lookup_expr="icontains")
    sent_after = django_filters.DateTimeFilter(field_name="sent_at", lookup_expr="gte")
    sent_before = django_filters.DateTimeFilter(field_name="sent_at", lookup_expr="lte")

    class Meta:
        model = Shipment
        fields = ["status", "carrier", "box_number", "sent_after", "sent_before"]
