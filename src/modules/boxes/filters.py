import django_filters

from modules.boxes.models import Box


class BoxFilter(django_filters.FilterSet):
    number = django_filters.CharFilter(field_name="number", lookup_expr="icontains")
    available = django_filters.BooleanFilter(field_name="is_available")

    class Meta:
        model = Box
        fields = ["number", "available"]
