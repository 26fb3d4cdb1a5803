import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .decorators import api_login_required
from .exceptions import AuthError
from .forms import LoginForm, RefreshForm, RegisterForm
from .services.auth_service import AuthManager
from .utils.api import form_errors, json_error, json_ok, parse_json_body
from .utils.session_utils import get_device_info, get_user_active_sessions

logger = logging.getLogger(__name__)


def _user_payload(user):
    return {
        'id': user.pk,
        'username': user.username,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
    }


def _bound_form(request, form_class):
    data = parse_json_body(request)
    if data is None:
        return None
    return form_class(data)


@csrf_exempt
@require_POST
def register(request):
    form = _bound_form(request, RegisterForm)
    if form is None:
        return json_error('validation_error', 'Malformed JSON body')
    if not form.is_valid():
        message, errors = form_errors(form)
        return json_error('validation_error', message, errors=errors)

    try:
        user, tokens = AuthManager().register(device_info=get_device_info(request), **form.cleaned_data)
    except AuthError as e:
        return json_error(e.kind, e.message, e.status_code)

    return json_ok({'user': _user_payload(user), 'tokens': tokens}, status=201)


@csrf_exempt
@require_POST
def login(request):
    form = _bound_form(request, LoginForm)
    if form is None:
        return json_error('validation_error', 'Malformed JSON body')
    if not form.is_valid():
        message, errors = form_errors(form)
        return json_error('validation_error', message, errors=errors)

    try:
        user, tokens = AuthManager().login(
            form.cleaned_data['username'],
            form.cleaned_data['password'],
            device_info=get_device_info(request),
        )
    except AuthError as e:
        return json_error(e.kind, e.message, e.status_code)

    return json_ok({'user': _user_payload(user), 'tokens': tokens})


@csrf_exempt
@require_POST
def refresh(request):
    form = _bound_form(request, RefreshForm)
    if form is None:
        return json_error('validation_error', 'Malformed JSON body')
    if not form.is_valid():
        message, errors = form_errors(form)
        return json_error('validation_error', message, errors=errors)

    try:
        tokens = AuthManager().refresh(form.cleaned_data['refresh_token'])
    except AuthError as e:
        return json_error(e.kind, e.message, e.status_code)

    return json_ok({'tokens': tokens})


@csrf_exempt
@require_POST
@api_login_required
def logout(request):
    AuthManager().logout(request.user, request.auth_session.pk)
    logger.info(f"User {request.user.username} logged out of session {request.auth_session.pk}")
    return json_ok(message='You have been logged out successfully.')


@csrf_exempt
@require_POST
@api_login_required
def logout_all(request):
    count = AuthManager().logout_all(request.user)
    logger.info(f"User {request.user.username} logged out of {count} sessions")
    return json_ok({'revoked_sessions': count}, message='You have been logged out from all devices.')


@require_GET
@api_login_required
def sessions(request):
    return json_ok(get_user_active_sessions(request.user, request.auth_session.pk))
