"""Content collections (categories, media, pages, posts) and site globals."""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

DEFAULT_MEDIA_ALT = "Image"
MAX_NAV_ITEMS = 6


class Status(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"


class Category(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title


class Media(models.Model):
    """Uploaded file; ownership is recorded but never grants deletion."""

    file = models.FileField(upload_to="uploads/", blank=True)
    alt = models.CharField(max_length=255, blank=True)
    caption = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploads",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "media"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.alt or self.file.name

    def save(self, *args, **kwargs):
        if self._state.adding and not self.alt:
            self.alt = DEFAULT_MEDIA_ALT
        super().save(*args, **kwargs)


class Publishable(models.Model):
    """Draft/published document with an owner and an auto-generated slug.

    ``published_at`` is stamped the first time the record is saved as
    published and left alone afterwards.
    """

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)
    published_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(class)s_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-updated_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    @property
    def is_published(self) -> bool:
        return self.status == Status.PUBLISHED

    def save(self, *args, **kwargs):
        if self.is_published and self.published_at is None:
            self.published_at = timezone.now()
        if not self.slug:
            self.slug = self._unique_slug()
        super().save(*args, **kwargs)

    def _unique_slug(self) -> str:
        base = slugify(self.title)[:240] or type(self).__name__.lower()
        candidate, suffix = base, 2
        siblings = type(self).objects.exclude(pk=self.pk)
        while siblings.filter(slug=candidate).exists():
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate


class Page(Publishable):
    # Block layout is stored opaquely; rendering lives in the frontend.
    layout = models.JSONField(default=list, blank=True)


class Post(Publishable):
    content = models.TextField()
    hero_image = models.ForeignKey(
        Media,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    categories = models.ManyToManyField(Category, blank=True, related_name="posts")
    authors = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="posts")
    related_posts = models.ManyToManyField("self", symmetrical=False, blank=True)


class SiteGlobal(models.Model):
    """Singleton holding navigation items, always stored under pk=1."""

    id = models.PositiveSmallIntegerField(primary_key=True, default=1, editable=False)
    nav_items = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @classmethod
    def load(cls):
        instance, _ = cls.objects.get_or_create(pk=1)
        return instance


class Header(SiteGlobal):
    pass


class Footer(SiteGlobal):
    pass


__all__ = [
    "Status",
    "Category",
    "Media",
    "Page",
    "Post",
    "Header",
    "Footer",
    "DEFAULT_MEDIA_ALT",
    "MAX_NAV_ITEMS",
]
