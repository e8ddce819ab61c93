import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    payment_status = django_filters.CharFilter(
        field_name="payment_status", lookup_expr="iexact"
    )
    school = django_filters.UUIDFilter(field_name="school_id")
    school_code = django_filters.CharFilter(field_name="school__code")
    parent_phone = django_filters.CharFilter(field_name="parent_phone")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    min_total = django_filters.NumberFilter(
        field_name="total_amount_paise", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount_paise", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_status",
            "school",
            "school_code",
            "parent_phone",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
