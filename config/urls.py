from django.contrib import admin
from django.urls import include, path

from apps.conversions.views import ConversionWebhookView

urlpatterns = [
    path("admin/", admin.site.urls),
    # Advertiser server-to-server conversion webhook
    path("api/webhook/conversion/", ConversionWebhookView.as_view(), name="conversion-webhook"),
    path("api/track/", include("apps.tracking.urls")),
    path("api/track/", include("apps.conversions.urls")),
    path("api/publishers/", include("apps.publishers.urls")),
]
