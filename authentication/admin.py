from django.contrib import admin

from .models import UserSession


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ['user', 'device_id', 'ip_address', 'is_active', 'revoke_reason', 'last_activity', 'refresh_expires_at']
    list_filter = ['is_active', 'revoke_reason']
    search_fields = ['user__username', 'device_id', 'ip_address']
    readonly_fields = ['id', 'refresh_jti', 'token_version', 'created_at']
