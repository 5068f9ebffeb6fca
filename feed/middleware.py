"""
================================================================================
CAMPUS FEED - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Caller identity resolution and domain error responses

MODULE PURPOSE
================================================================================
1. CallerIdentityMiddleware
   - Reads the identity cookie set by the login view
   - Stores the normalized identity key on request.caller_email
   - "" means anonymous

2. FeedErrorMiddleware
   - Turns feed.errors.FeedError subclasses raised by views into JSON
     responses with the matching status code
   - Anything else is left for Django's normal handling

MIDDLEWARE ORDER
================================================================================
Both sit after AuthenticationMiddleware in settings.MIDDLEWARE. The identity
cookie is independent of Django's auth session: the admin uses sessions, the
feed API uses the cookie.

ERROR RESPONSE FORMAT
================================================================================
    HTTP 404
    {"error": "NOT_FOUND", "msg": "Post does not exist"}

Extra keyword details given to the exception are merged into the payload.

================================================================================
"""

import logging

from django.conf import settings
from django.http import JsonResponse

from .errors import FeedError
from .identity import normalize_email


logger = logging.getLogger(__name__)


# ============================================================================
# CALLER IDENTITY MIDDLEWARE
# ============================================================================

class CallerIdentityMiddleware:
    """
    Attach the caller's identity key to every request.

    The cookie may hold any representation of the email (``Bob%40Mail.com``,
    padded, mixed case); views only ever see the normalized key.

    Attributes set on request:
        caller_email (str): Normalized identity key, "" when anonymous
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        cookie_name = getattr(settings, 'FEED_IDENTITY_COOKIE', 'email')
        request.caller_email = normalize_email(request.COOKIES.get(cookie_name))
        return self.get_response(request)


# ============================================================================
# DOMAIN ERROR MIDDLEWARE
# ============================================================================

class FeedErrorMiddleware:
    """Render FeedError exceptions as JSON error responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, FeedError):
            return None

        logger.info(
            f"{request.method} {request.path} -> {exception.status_code} "
            f"{exception.code}: {exception.message}"
        )
        return JsonResponse(exception.as_dict(), status=exception.status_code)
