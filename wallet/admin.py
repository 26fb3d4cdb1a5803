from django.contrib import admin

from .models import Account, Transaction


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """
    Admin interface for ledger accounts
    """
    list_display = ['user', 'name', 'account_type', 'currency', 'balance', 'is_default', 'is_active', 'last_transaction_date']
    list_filter = ['currency', 'account_type', 'is_active']
    search_fields = ['user__username', 'user__email', 'name', 'bank_name']
    readonly_fields = ['balance', 'created_at', 'updated_at', 'last_transaction_date']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """
    Read-only audit trail of balance movements
    """
    list_display = ['reference_number', 'user', 'transaction_type', 'direction', 'amount', 'currency', 'status', 'created_at']
    list_filter = ['transaction_type', 'direction', 'status', 'currency']
    search_fields = ['reference_number', 'idempotency_key', 'user__username']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
