from rest_framework import permissions, views
from rest_framework.response import Response

from .services import resolve_publisher_id


class ResolvePublisherView(views.APIView):
    """Return the canonical publisher id for an email or id."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        publisher_id = resolve_publisher_id(request.query_params.get("pub_id"))
        return Response({"publisher_id": str(publisher_id)})
