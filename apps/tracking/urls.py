from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import ClickRedirectView, LinkViewSet

router = DefaultRouter()
router.register("links", LinkViewSet, basename="tracking-link")

urlpatterns = router.urls + [
    path("click/", ClickRedirectView.as_view(), name="track-click"),
]
