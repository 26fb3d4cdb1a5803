import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from authentication.decorators import api_login_required
from authentication.utils.api import form_errors, json_error, json_ok, parse_json_body
from .exceptions import LedgerError
from .forms import AccountForm, DepositForm
from .services import LedgerService, account_to_dict, transaction_to_dict

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@api_login_required
def accounts(request):
    """List the user's accounts, or open a new one"""
    if request.method == 'GET':
        user_accounts = request.user.accounts.filter(is_active=True)
        return json_ok([account_to_dict(a) for a in user_accounts])

    data = parse_json_body(request)
    if data is None:
        return json_error('validation_error', 'Malformed JSON body')
    form = AccountForm(data)
    if not form.is_valid():
        message, errors = form_errors(form)
        return json_error('validation_error', message, errors=errors)

    account = LedgerService.open_account(request.user, **form.cleaned_data)
    return json_ok(account_to_dict(account), status=201)


@csrf_exempt
@require_POST
@api_login_required
def deposit(request, account_id):
    data = parse_json_body(request)
    if data is None:
        return json_error('validation_error', 'Malformed JSON body')
    form = DepositForm(data)
    if not form.is_valid():
        message, errors = form_errors(form)
        return json_error('validation_error', message, errors=errors)

    try:
        account = LedgerService.get_account(request.user, account_id)
        txn = LedgerService.credit(
            account,
            form.cleaned_data['amount'],
            transaction_type='deposit',
            description=form.cleaned_data['description'] or 'Deposit',
        )
    except LedgerError as e:
        return json_error(e.kind, e.message, e.status_code)

    account.refresh_from_db()
    return json_ok({'account': account_to_dict(account), 'transaction': transaction_to_dict(txn)})


@require_GET
@api_login_required
def transactions(request, account_id):
    try:
        account = LedgerService.get_account(request.user, account_id)
    except LedgerError as e:
        return json_error(e.kind, e.message, e.status_code)

    try:
        limit = min(max(int(request.GET.get('limit', 50)), 1), 200)
    except ValueError:
        limit = 50

    history = LedgerService.get_transaction_history(
        account, limit=limit, transaction_type=request.GET.get('type') or None
    )
    return json_ok([transaction_to_dict(t) for t in history])
