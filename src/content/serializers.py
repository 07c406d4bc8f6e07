"""Serializers for content collections and site globals."""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from access_control.decisions import EntityType
from access_control.serializers import FieldAccessMixin
from .models import MAX_NAV_ITEMS, Category, Media, Page, Post

User = get_user_model()


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "title", "description", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]


class MediaSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Media
        fields = ["id", "file", "alt", "caption", "created_by", "created_at", "updated_at"]
        read_only_fields = ["id", "created_by", "created_at", "updated_at"]
        extra_kwargs = {"file": {"required": False}}


class PageSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        """Ownership, publication timestamp, and audit fields are server-managed."""
        model = Page
        fields = [
            "id",
            "title",
            "slug",
            "layout",
            "status",
            "published_at",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_by", "created_at", "updated_at"]
        extra_kwargs = {"slug": {"required": False}}


class PostSerializer(FieldAccessMixin, serializers.ModelSerializer):
    """Post payload with a derived, never writable ``populated_authors`` list."""

    access_entity = EntityType.POSTS

    created_by = serializers.PrimaryKeyRelatedField(read_only=True)
    authors = serializers.PrimaryKeyRelatedField(
        many=True, required=False, queryset=User.objects.all()
    )
    populated_authors = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            "id",
            "title",
            "slug",
            "content",
            "hero_image",
            "categories",
            "authors",
            "populated_authors",
            "related_posts",
            "status",
            "published_at",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_by", "created_at", "updated_at"]
        extra_kwargs = {
            "slug": {"required": False},
            "categories": {"required": False},
            "related_posts": {"required": False},
        }

    @staticmethod
    def get_populated_authors(obj) -> list[dict]:
        return [{"id": str(author.pk), "name": author.name} for author in obj.authors.all()]

    def validate_related_posts(self, value):
        if self.instance is not None and any(post.pk == self.instance.pk for post in value):
            raise serializers.ValidationError("A post cannot be related to itself.")
        return value


class GlobalSerializer(serializers.Serializer):
    """Navigation items of a header or footer singleton."""

    nav_items = serializers.ListField(
        child=serializers.DictField(), max_length=MAX_NAV_ITEMS, required=False
    )
    updated_at = serializers.DateTimeField(read_only=True)

    @staticmethod
    def validate_nav_items(value):
        cleaned = []
        for index, item in enumerate(value):
            label = str(item.get("label", "")).strip()
            url = str(item.get("url", "")).strip()
            if not label or not url:
                raise serializers.ValidationError(
                    f"Navigation item {index} needs a non-empty label and url."
                )
            cleaned.append({"label": label, "url": url})
        return cleaned

    def update(self, instance, validated_data):
        if "nav_items" in validated_data:
            instance.nav_items = validated_data["nav_items"]
        instance.save()
        return instance


__all__ = [
    "CategorySerializer",
    "MediaSerializer",
    "PageSerializer",
    "PostSerializer",
    "GlobalSerializer",
]
