from django.urls import path

from .views import DirectConversionView

urlpatterns = [
    path("convert/", DirectConversionView.as_view(), name="track-convert"),
]
