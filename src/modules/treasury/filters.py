import django_filters

from modules.treasury.constants import Currency, MovementKind
from modules.treasury.models import TreasuryMovement


class TreasuryMovementFilter(django_filters.FilterSet):
    currency = django_filters.ChoiceFilter(
        field_name="account__currency", choices=Currency.choices
    )
    kind = django_filters.ChoiceFilter(field_name="kind", choices=MovementKind.choices)
    reference = django_filters.CharFilter(field_name="reference", lookup_expr="iexact")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = TreasuryMovement
        fields = ["currency", "kind", "reference", "start_date", "end_date"]
