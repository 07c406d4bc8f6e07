"""Content collections and globals protected by CMSPermission."""

from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from access_control.decisions import EntityType
from access_control.permissions import CMSPermission
from access_control.viewsets import CMSViewSet
from core.response import BaseAPIView, api_response
from .models import Category, Footer, Header, Media, Page, Post
from .serializers import (
    CategorySerializer,
    GlobalSerializer,
    MediaSerializer,
    PageSerializer,
    PostSerializer,
)


class CategoryViewSet(CMSViewSet):
    serializer_class = CategorySerializer
    entity_type = EntityType.CATEGORIES
    queryset = Category.objects.all()


class MediaViewSet(CMSViewSet):
    serializer_class = MediaSerializer
    entity_type = EntityType.MEDIA
    queryset = Media.objects.all()
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def perform_create(self, serializer):
        """Record the uploader; uploading never grants later deletion."""
        serializer.save(created_by=self.request.user)


class PublishableViewSet(CMSViewSet):
    """Shared create/list behaviour for pages and posts."""

    def get_queryset(self):
        queryset = super().get_queryset()
        status = self.request.query_params.get("status")
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class PageViewSet(PublishableViewSet):
    serializer_class = PageSerializer
    entity_type = EntityType.PAGES
    queryset = Page.objects.all()


class PostViewSet(PublishableViewSet):
    serializer_class = PostSerializer
    entity_type = EntityType.POSTS
    queryset = Post.objects.prefetch_related("authors", "categories", "related_posts")

    def perform_create(self, serializer):
        """Default the author list to the creating user."""
        authors = serializer.validated_data.get("authors") or [self.request.user]
        serializer.save(created_by=self.request.user, authors=authors)


class GlobalView(BaseAPIView):
    """Read or update one site-wide singleton."""

    permission_classes = [CMSPermission]
    entity_type = None
    model = None

    def get(self, request):
        instance = self.model.load()
        self.check_object_permissions(request, instance)
        return api_response(GlobalSerializer(instance).data)

    def patch(self, request):
        instance = self.model.load()
        self.check_object_permissions(request, instance)
        serializer = GlobalSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(serializer.data)

    put = patch


class HeaderView(GlobalView):
    entity_type = EntityType.HEADER
    model = Header


class FooterView(GlobalView):
    entity_type = EntityType.FOOTER
    model = Footer


__all__ = [
    "CategoryViewSet",
    "MediaViewSet",
    "PageViewSet",
    "PostViewSet",
    "HeaderView",
    "FooterView",
]
