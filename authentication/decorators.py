from functools import wraps

from authentication.exceptions import AuthError
from authentication.utils.api import json_error


def api_login_required(function):
    """Answer 401 JSON unless the request carries a valid bearer access token"""
    @wraps(function)
    def wrap(request, *args, **kwargs):
        if getattr(request, 'auth_session', None) is not None and request.user.is_authenticated:
            return function(request, *args, **kwargs)
        error = getattr(request, 'auth_error', None) or AuthError("Authentication credentials were not provided")
        return json_error(error.kind, error.message, error.status_code)
    return wrap
