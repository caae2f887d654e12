from urllib.parse import urlencode

from django.conf import settings
from rest_framework import serializers

from apps.offers.models import Offer
from core.exceptions import NotFound

from .models import Link
from .services import issue_links


class LinkSerializer(serializers.ModelSerializer):
    offer_name = serializers.CharField(source="offer.name", read_only=True)
    publisher_email = serializers.EmailField(source="publisher.email", read_only=True)
    tracking_url = serializers.SerializerMethodField()

    class Meta:
        model = Link
        fields = [
            "id",
            "offer",
            "offer_name",
            "publisher",
            "publisher_email",
            "name",
            "fixed_conversion_rate",
            "tracking_url",
            "created_at",
        ]
        read_only_fields = ["id", "offer", "publisher", "name", "fixed_conversion_rate", "created_at"]

    def get_tracking_url(self, link: Link) -> str:
        query = urlencode(
            {
                "pub_id": str(link.publisher_id),
                "offer_id": link.offer_id,
                "link_id": str(link.id),
            }
        )
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/api/track/click/?{query}"


class IssueLinksSerializer(serializers.Serializer):
    offer_id = serializers.IntegerField(min_value=1)
    publisher_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=True,
    )
    name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)

    def create(self, validated_data):
        offer = Offer.objects.filter(pk=validated_data["offer_id"]).first()
        if offer is None:
            raise NotFound("Offer not found")
        return issue_links(
            offer=offer,
            publisher_ids=validated_data.get("publisher_ids"),
            name=validated_data.get("name"),
        )
