from decimal import Decimal

from rest_framework import serializers

from .models import Conversion


class DirectConversionSerializer(serializers.Serializer):
    click_id = serializers.UUIDField()
    offer_id = serializers.IntegerField(min_value=1, required=False)
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
    )


class ConversionWebhookSerializer(serializers.Serializer):
    link_id = serializers.UUIDField()
    event_id = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ConversionSerializer(serializers.ModelSerializer):
    click_id = serializers.UUIDField(source="click.click_id", read_only=True, allow_null=True)

    class Meta:
        model = Conversion
        fields = [
            "id",
            "click_id",
            "offer",
            "publisher",
            "link",
            "amount",
            "commission_amount",
            "currency",
            "status",
            "created_at",
        ]
