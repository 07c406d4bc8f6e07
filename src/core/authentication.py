"""Bridge between the JWT middleware and DRF authentication.

``JWTAuthMiddleware`` already validated the bearer token and attached the
user to the Django request; this authenticator surfaces that user to DRF.
"""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF.

    No credential parsing happens here. Anonymous or missing users skip
    authentication, which makes DRF raise NotAuthenticated (401) when a
    predicate denies an unauthenticated caller.
    """

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None

        if not getattr(user, "is_authenticated", False):
            return None

        return user, None

    def authenticate_header(self, request) -> str:
        return 'Bearer realm="cms"'


__all__ = ["MiddlewareUserAuthentication"]
