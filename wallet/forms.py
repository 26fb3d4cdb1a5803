from django import forms
from django.core.exceptions import ValidationError
from decimal import Decimal

from .models import Account


class AccountForm(forms.ModelForm):
    """Form for opening a new account"""

    class Meta:
        model = Account
        fields = ['name', 'account_type', 'bank_name', 'currency', 'is_default']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['account_type'].required = False
        self.fields['currency'].required = False

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if not name:
            raise ValidationError("Account name is required.")
        return name

    def clean_account_type(self):
        return self.cleaned_data.get('account_type') or 'checking'

    def clean_currency(self):
        return self.cleaned_data.get('currency') or 'HTG'


class DepositForm(forms.Form):
    amount = forms.DecimalField(max_digits=15, decimal_places=2)
    description = forms.CharField(max_length=255, required=False)

    def clean_amount(self):
        amount = self.cleaned_data.get('amount')
        if amount is not None and amount <= Decimal('0.00'):
            raise ValidationError("Amount must be greater than zero.")
        return amount
