from django.urls import path

from .views import ResolvePublisherView

urlpatterns = [
    path("resolve/", ResolvePublisherView.as_view(), name="publisher-resolve"),
]
