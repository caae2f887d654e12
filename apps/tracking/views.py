from django.shortcuts import redirect
from rest_framework import permissions, status, views, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.publishers.services import resolve_publisher_id

from .filters import LinkFilter
from .models import Link
from .serializers import IssueLinksSerializer, LinkSerializer
from .services import client_ip, has_seen_marker, parse_offer_id, record_click, set_seen_marker


class ClickRedirectView(views.APIView):
    """
    Public click endpoint: records the click and redirects to the offer
    with the click correlation token appended.
    """

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "tracking"

    def get(self, request: Request, *args, **kwargs):
        publisher_id = resolve_publisher_id(request.query_params.get("pub_id"))
        offer_id = parse_offer_id(request.query_params.get("offer_id"))

        result = record_click(
            publisher_id=publisher_id,
            offer_id=offer_id,
            link_id=request.query_params.get("link_id") or None,
            ip_address=client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
            seen_marker=has_seen_marker(request, publisher_id, offer_id),
        )

        response = redirect(result.redirect_url)
        if result.click.is_unique:
            set_seen_marker(response, publisher_id, offer_id)
        return response


class LinkViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Link.objects.select_related("offer", "publisher").all()
    serializer_class = LinkSerializer
    permission_classes = [permissions.IsAdminUser]
    filterset_class = LinkFilter
    search_fields = ["name", "offer__name", "publisher__email"]
    ordering_fields = ["created_at"]

    @action(detail=False, methods=["post"], url_path="issue")
    def issue(self, request: Request) -> Response:
        serializer = IssueLinksSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        links = serializer.save()
        return Response(LinkSerializer(links, many=True).data, status=status.HTTP_201_CREATED)
