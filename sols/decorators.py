import logging
from functools import wraps

from authentication.utils.api import json_error
from wallet.exceptions import LedgerError
from .exceptions import SolError

logger = logging.getLogger(__name__)


def handle_sol_errors(function):
    """Turn domain errors into the JSON error shape; anything else is a logged 500"""
    @wraps(function)
    def wrap(request, *args, **kwargs):
        try:
            return function(request, *args, **kwargs)
        except (SolError, LedgerError) as e:
            return json_error(e.kind, e.message, e.status_code)
        except Exception:
            logger.exception(f"Unexpected error in {function.__name__} for {request.user}")
            return json_error('server_error', 'An unexpected error occurred. Please try again.', 500)
    return wrap
