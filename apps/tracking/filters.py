import django_filters

from apps.publishers.services import resolve_publisher_id

from .models import Link


class LinkFilter(django_filters.FilterSet):
    offer_id = django_filters.NumberFilter(field_name="offer_id")
    publisher_id = django_filters.CharFilter(method="filter_publisher")
    name = django_filters.CharFilter(field_name="name")

    class Meta:
        model = Link
        fields = ["offer_id", "publisher_id", "name"]

    def filter_publisher(self, queryset, name, value):
        # Accepts an email as well as the canonical id.
        return queryset.filter(publisher_id=resolve_publisher_id(value))
