"""Small helpers shared by the JSON API views"""

import json

from django.http import JsonResponse


def parse_json_body(request):
    """
    Request payload as a dict. JSON bodies are decoded, form posts fall back
    to request.POST. Returns None for a malformed JSON body.
    """
    if request.content_type == 'application/json':
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except (ValueError, UnicodeDecodeError):
            return None
        return data if isinstance(data, dict) else None
    return request.POST.dict()


def json_error(kind, message, status=400, **extra):
    payload = {'success': False, 'error': kind, 'message': message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def json_ok(data=None, status=200, **extra):
    payload = {'success': True}
    if data is not None:
        payload['data'] = data
    payload.update(extra)
    return JsonResponse(payload, status=status)


def form_errors(form):
    """First error message of a bound form, plus the full error dict"""
    errors = form.errors.get_json_data()
    first = next(iter(errors.values()))[0]['message'] if errors else 'Invalid input'
    return first, {field: [e['message'] for e in messages] for field, messages in errors.items()}
