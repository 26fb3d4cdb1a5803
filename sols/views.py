import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from authentication.decorators import api_login_required
from authentication.utils.api import form_errors, json_error, json_ok, parse_json_body
from .decorators import handle_sol_errors
from .forms import JoinSolForm, PaymentForm, ReasonForm, SolCreateForm
from .serializers import payment_to_dict, sol_to_dict
from .services import PaymentService, SolService

logger = logging.getLogger(__name__)


def _bind(request, form_class):
    """Bound form from the request body, or an error response"""
    data = parse_json_body(request)
    if data is None:
        return None, json_error('validation_error', 'Malformed JSON body')
    form = form_class(data)
    if not form.is_valid():
        message, errors = form_errors(form)
        return None, json_error('validation_error', message, errors=errors)
    return form, None


def _page_payload(page):
    return {
        'page': page.number,
        'pages': page.paginator.num_pages,
        'total': page.paginator.count,
    }


def _page_number(request):
    try:
        return max(int(request.GET.get('page', 1)), 1)
    except ValueError:
        return 1


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_login_required
@handle_sol_errors
def sol_list(request):
    """GET: the user's sols. POST: create a sol."""
    if request.method == 'GET':
        page = SolService.get_user_sols(
            request.user,
            status=request.GET.get('status') or None,
            sol_type=request.GET.get('type') or None,
            page=_page_number(request),
        )
        return json_ok([sol_to_dict(s) for s in page], pagination=_page_payload(page))

    form, error = _bind(request, SolCreateForm)
    if error:
        return error

    sol = SolService.create_sol(request.user, form.cleaned_data)
    return json_ok(sol_to_dict(sol, detail=True), status=201, message='Sol created successfully')


@require_GET
@api_login_required
@handle_sol_errors
def discover(request):
    page = SolService.discover_sols(
        request.user,
        currency=request.GET.get('currency') or None,
        sol_type=request.GET.get('type') or None,
        page=_page_number(request),
    )
    data = []
    for sol in page:
        item = sol_to_dict(sol)
        item['access_code'] = sol.access_code
        data.append(item)
    return json_ok(data, pagination=_page_payload(page))


@require_GET
@api_login_required
@handle_sol_errors
def personal_analytics(request):
    return json_ok(SolService.get_personal_analytics(request.user))


@csrf_exempt
@require_POST
@api_login_required
@handle_sol_errors
def join(request):
    form, error = _bind(request, JoinSolForm)
    if error:
        return error

    participant = SolService.join_sol(
        request.user,
        form.cleaned_data['access_code'],
        payout_account_id=form.cleaned_data.get('payout_account_id'),
    )
    sol = SolService.get_sol_for_user(request.user, participant.sol_id)
    return json_ok(
        sol_to_dict(sol, detail=True),
        message=f'You joined {sol.name} at position {participant.position}',
    )


@require_GET
@api_login_required
@handle_sol_errors
def sol_detail(request, sol_id):
    sol = SolService.get_sol_for_user(request.user, sol_id)
    return json_ok(sol_to_dict(sol, detail=True))


@csrf_exempt
@require_POST
@api_login_required
@handle_sol_errors
def make_payment(request, sol_id):
    form, error = _bind(request, PaymentForm)
    if error:
        return error

    payment = PaymentService.record_payment(
        request.user,
        sol_id,
        form.cleaned_data['account_id'],
        form.cleaned_data['amount'],
        payment_method=form.cleaned_data.get('payment_method') or 'wallet',
        notes=form.cleaned_data.get('notes') or '',
    )
    sol = SolService.get_sol_for_user(request.user, sol_id)
    return json_ok(
        {'payment': payment_to_dict(payment), 'sol': sol_to_dict(sol, detail=True)},
        status=201,
        message='Payment recorded',
    )


def _lifecycle_view(operation, success_message):
    @csrf_exempt
    @require_POST
    @api_login_required
    @handle_sol_errors
    def view(request, sol_id):
        form, error = _bind(request, ReasonForm)
        if error:
            return error
        sol = operation(request.user, sol_id, form.cleaned_data.get('reason') or '')
        return json_ok({'id': str(sol.pk), 'status': sol.status}, message=success_message)
    return view


leave = _lifecycle_view(lambda user, sol_id, reason: SolService.leave_sol(user, sol_id, reason), 'You left the sol')
cancel = _lifecycle_view(lambda user, sol_id, reason: SolService.cancel_sol(sol_id, user, reason), 'Sol cancelled')
pause = _lifecycle_view(lambda user, sol_id, reason: SolService.pause_sol(sol_id, user, reason), 'Sol paused')
resume = _lifecycle_view(lambda user, sol_id, reason: SolService.resume_sol(sol_id, user, reason), 'Sol resumed')
