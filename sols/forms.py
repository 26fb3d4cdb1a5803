from django import forms
from django.core.exceptions import ValidationError
from decimal import Decimal

from wallet.models import CURRENCY_CHOICES
from .constants import ACCESS_CODE_LENGTH, MAX_PARTICIPANTS, MIN_PARTICIPANTS
from .models import Payment, Sol


def _clean_string_list(value, field_label, max_items=10, max_length=200):
    if value in (None, ''):
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{field_label} must be a list of strings.")
    items = [item.strip() for item in value if item.strip()]
    if len(items) > max_items:
        raise ValidationError(f"At most {max_items} {field_label.lower()} allowed.")
    if any(len(item) > max_length for item in items):
        raise ValidationError(f"Each entry in {field_label.lower()} must be at most {max_length} characters.")
    return items


class SolCreateForm(forms.Form):
    """Shape of a new sol; business rules are checked by SolService"""

    name = forms.CharField(max_length=100)
    description = forms.CharField(max_length=500, required=False)
    sol_type = forms.ChoiceField(choices=Sol.SOL_TYPE_CHOICES, required=False)
    contribution_amount = forms.DecimalField(max_digits=12, decimal_places=2)
    currency = forms.ChoiceField(choices=CURRENCY_CHOICES, required=False)
    frequency = forms.ChoiceField(choices=Sol.FREQUENCY_CHOICES)
    max_participants = forms.IntegerField(min_value=MIN_PARTICIPANTS, max_value=MAX_PARTICIPANTS)
    start_date = forms.DateTimeField()
    interest_rate = forms.DecimalField(max_digits=5, decimal_places=2, required=False)
    service_fee = forms.DecimalField(max_digits=4, decimal_places=2, required=False)
    late_fee = forms.DecimalField(max_digits=4, decimal_places=2, required=False)
    is_private = forms.BooleanField(required=False)
    tags = forms.JSONField(required=False)
    rules = forms.JSONField(required=False)
    payout_account_id = forms.IntegerField(required=False)

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise ValidationError("Sol name is required.")
        return name

    def clean_contribution_amount(self):
        amount = self.cleaned_data['contribution_amount']
        if amount <= Decimal('0'):
            raise ValidationError("Contribution amount must be greater than zero.")
        return amount

    def clean_tags(self):
        return _clean_string_list(self.cleaned_data.get('tags'), 'Tags', max_length=30)

    def clean_rules(self):
        return _clean_string_list(self.cleaned_data.get('rules'), 'Rules')


class JoinSolForm(forms.Form):
    access_code = forms.CharField(min_length=ACCESS_CODE_LENGTH, max_length=ACCESS_CODE_LENGTH)
    payout_account_id = forms.IntegerField(required=False)

    def clean_access_code(self):
        code = self.cleaned_data['access_code'].strip().upper()
        if not code.isalnum():
            raise ValidationError("Access code must be 6 letters or digits.")
        return code


class PaymentForm(forms.Form):
    account_id = forms.IntegerField()
    amount = forms.DecimalField(max_digits=12, decimal_places=2)
    payment_method = forms.ChoiceField(choices=Payment.PAYMENT_METHOD_CHOICES, required=False)
    notes = forms.CharField(max_length=200, required=False)


class ReasonForm(forms.Form):
    reason = forms.CharField(max_length=500, required=False)
