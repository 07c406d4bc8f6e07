"""Routing for content collections and site globals."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    CategoryViewSet,
    FooterView,
    HeaderView,
    MediaViewSet,
    PageViewSet,
    PostViewSet,
)

router = DefaultRouter()
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"media", MediaViewSet, basename="media")
router.register(r"pages", PageViewSet, basename="page")
router.register(r"posts", PostViewSet, basename="post")

urlpatterns = [
    path("globals/header/", HeaderView.as_view(), name="global-header"),
    path("globals/footer/", FooterView.as_view(), name="global-footer"),
    path("", include(router.urls)),
]
