"""Root URL configuration for the CMS API."""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("", include("authentication.urls")),
    path("", include("access_control.urls")),
    path("", include("content.urls")),
]
