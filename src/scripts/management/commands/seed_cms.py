"""Seed one demo user per role plus sample content and site globals."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from access_control.roles import Role, active_roles
from content.models import Category, Footer, Header, Page, Post, Status


DEMO_DOMAIN = "example.com"
DEMO_PASSWORD_SUFFIX = "pass"


class Command(BaseCommand):
    """Management command to seed demo users, content, and navigation."""

    help = (
        "Seed one demo user per active role, sample categories/pages/posts, "
        "and header/footer navigation. Use --reset to clear previously seeded "
        "data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Remove demo users and their content before running the seeder.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self._reset_seeded_data()

        self.stdout.write("Seeding CMS data...")
        with transaction.atomic():
            users = self._create_users()
            categories = self._create_categories()
            self._create_pages(users)
            self._create_posts(users, categories)
            self._create_globals()
        self.stdout.write(self.style.SUCCESS("CMS seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove demo users and the content they created.

        Only rows owned by the demo accounts are removed; globals are reset to
        empty navigation rather than deleted.
        """
        self.stdout.write("Resetting previously seeded CMS data...")

        User = get_user_model()
        demo_users = User.objects.filter(email__in=[_demo_email(role) for role in Role])

        Post.objects.filter(created_by__in=demo_users).delete()
        Page.objects.filter(created_by__in=demo_users).delete()
        Category.objects.filter(title__in=[title for title, _ in SAMPLE_CATEGORIES]).delete()
        demo_users.delete()

        for model in (Header, Footer):
            site_global = model.load()
            site_global.nav_items = []
            site_global.save()

        self.stdout.write(self.style.WARNING("Seeded CMS data cleared."))

    @staticmethod
    def _create_users():
        """Create a demo account for every role in the active role set.

        The administrator is created first so the first-user promotion never
        lands on a less privileged demo account.
        """
        User = get_user_model()
        users = {}
        for role in sorted(active_roles(), key=lambda r: r != Role.ADMINISTRATOR):
            email = _demo_email(role)
            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(
                    email=email,
                    password=f"{role.value}{DEMO_PASSWORD_SUFFIX}",
                    name=role.label,
                    role=role,
                )
            users[role] = user
        return users

    @staticmethod
    def _create_categories():
        categories = []
        for title, description in SAMPLE_CATEGORIES:
            category, _ = Category.objects.get_or_create(
                title=title, defaults={"description": description}
            )
            categories.append(category)
        return categories

    @staticmethod
    def _create_pages(users):
        editor = users.get(Role.EDITOR) or users[Role.ADMINISTRATOR]
        Page.objects.get_or_create(
            slug="home",
            defaults={
                "title": "Home",
                "status": Status.PUBLISHED,
                "layout": [{"block": "hero", "heading": "Welcome"}],
                "created_by": editor,
            },
        )
        Page.objects.get_or_create(
            slug="about-draft",
            defaults={
                "title": "About (draft)",
                "status": Status.DRAFT,
                "created_by": editor,
            },
        )

    @staticmethod
    def _create_posts(users, categories):
        author = users.get(Role.AUTHOR) or users[Role.ADMINISTRATOR]
        editor = users.get(Role.EDITOR) or users[Role.ADMINISTRATOR]
        samples = [
            ("hello-world", "Hello World", Status.PUBLISHED, author, [author]),
            ("work-in-progress", "Work in progress", Status.DRAFT, author, [author]),
            ("editors-note", "Editor's note", Status.PUBLISHED, editor, [editor, author]),
        ]
        for slug, title, status, creator, authors in samples:
            post, created = Post.objects.get_or_create(
                slug=slug,
                defaults={
                    "title": title,
                    "status": status,
                    "content": f"Sample content for {title}.",
                    "created_by": creator,
                },
            )
            if created:
                post.authors.set(authors)
                post.categories.set(categories[:1])

    @staticmethod
    def _create_globals():
        header = Header.load()
        if not header.nav_items:
            header.nav_items = [
                {"label": "Home", "url": "/"},
                {"label": "Blog", "url": "/posts"},
            ]
            header.save()
        footer = Footer.load()
        if not footer.nav_items:
            footer.nav_items = [{"label": "About", "url": "/about"}]
            footer.save()


SAMPLE_CATEGORIES = [
    ("News", "Announcements and updates."),
    ("Guides", "How-to articles."),
]


def _demo_email(role: Role) -> str:
    return f"{role.value}@{DEMO_DOMAIN}"
