"""Routing for the access introspection endpoint."""

from django.urls import path

from .views import AccessView

urlpatterns = [
    path("access/", AccessView.as_view(), name="access"),
]
