"""
SolSpace JWT authentication middleware.
Resolves `Authorization: Bearer <access token>` into request.user.
"""

import logging

from django.utils.deprecation import MiddlewareMixin
from django.utils.functional import SimpleLazyObject

from authentication.exceptions import AuthError
from authentication.services.auth_service import AuthManager
from authentication.services.token_service import extract_bearer_token

logger = logging.getLogger(__name__)


class JWTAuthenticationMiddleware(MiddlewareMixin):
    """
    Authenticates API requests carrying a bearer access token.

    Must run after AuthenticationMiddleware; on success request.user is the
    token's user and request.auth_session the device session. An invalid
    token leaves the request anonymous and records the reason in
    request.auth_error so views can answer 401 with a precise kind.
    """

    def process_request(self, request):
        request.auth_session = None
        request.auth_error = None

        token = extract_bearer_token(request.META.get('HTTP_AUTHORIZATION'))
        if not token:
            return None

        try:
            user, session = AuthManager().authenticate_access_token(token)
        except AuthError as e:
            logger.info(f"Rejected bearer token on {request.path}: {e.kind}")
            request.auth_error = e
            return None

        request.user = SimpleLazyObject(lambda: user)
        request.auth_session = session
        return None
