from collections.abc import Mapping

from rest_framework import permissions, status, views
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from core.exceptions import InvalidInput

from .serializers import ConversionSerializer, ConversionWebhookSerializer, DirectConversionSerializer
from .services import record_direct_conversion, record_webhook_conversion


class TrackingAPIView(views.APIView):
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "tracking"


class DirectConversionView(TrackingAPIView):
    """Conversion pixel: attributes a conversion to a click correlation token."""

    def get(self, request: Request, *args, **kwargs) -> Response:
        # Pixels often send empty placeholders; treat them as absent.
        data = {key: value for key, value in request.query_params.items() if value != ""}
        serializer = DirectConversionSerializer(data=data)
        if not serializer.is_valid():
            raise InvalidInput(serializer.errors)

        conversion = record_direct_conversion(
            click_token=serializer.validated_data["click_id"],
            offer_id=serializer.validated_data.get("offer_id"),
            amount=serializer.validated_data.get("amount"),
        )
        return Response(
            {"success": True, "conversion": ConversionSerializer(conversion).data},
            status=status.HTTP_200_OK,
        )


class ConversionWebhookView(TrackingAPIView):
    """Advertiser webhook: attributes a conversion to a tracking link."""

    def post(self, request: Request, *args, **kwargs) -> Response:
        body = request.data if isinstance(request.data, Mapping) else {}
        data = {key: body[key] for key in ("link_id", "event_id") if key in body}
        # The header takes precedence over the body field and is validated the same way.
        if request.headers.get("Idempotency-Key"):
            data["event_id"] = request.headers["Idempotency-Key"]

        serializer = ConversionWebhookSerializer(data=data)
        if not serializer.is_valid():
            raise InvalidInput(serializer.errors)

        conversion = record_webhook_conversion(
            link_id=serializer.validated_data["link_id"],
            idempotency_key=serializer.validated_data.get("event_id"),
        )
        return Response(
            {
                "message": "Conversion recorded successfully.",
                "conversion": ConversionSerializer(conversion).data,
            },
            status=status.HTTP_201_CREATED,
        )
