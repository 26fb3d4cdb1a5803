from django.contrib import admin

from .models import Participant, Payment, Round, Sol, SolStatusHistory


class ParticipantInline(admin.TabularInline):
    model = Participant
    extra = 0
    fields = ['user', 'position', 'role', 'payment_status', 'total_paid', 'has_received', 'is_active']
    readonly_fields = fields
    can_delete = False


class RoundInline(admin.TabularInline):
    model = Round
    extra = 0
    fields = ['round_number', 'status', 'recipient', 'expected_amount', 'actual_amount', 'due_date', 'is_distributed']
    readonly_fields = fields
    can_delete = False


class StatusHistoryInline(admin.TabularInline):
    model = SolStatusHistory
    extra = 0
    fields = ['from_status', 'status', 'reason', 'changed_by', 'created_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Sol)
class SolAdmin(admin.ModelAdmin):
    list_display = [
        'name', 'access_code', 'creator', 'status', 'currency', 'contribution_amount',
        'max_participants', 'completed_rounds', 'next_payment_date', 'created_at',
    ]
    list_filter = ['status', 'currency', 'frequency', 'sol_type', 'is_private']
    search_fields = ['name', 'access_code', 'creator__username']
    readonly_fields = [
        'access_code', 'actual_start_date', 'completed_rounds', 'success_rate',
        'total_collected', 'total_distributed', 'created_at', 'updated_at',
    ]
    inlines = [ParticipantInline, RoundInline, StatusHistoryInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['payer', 'round', 'amount', 'status', 'payment_method', 'date']
    list_filter = ['status', 'payment_method']
    search_fields = ['payer__username', 'round__sol__name']
    readonly_fields = ['transaction', 'refund_transaction']
