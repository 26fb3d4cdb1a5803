"""SolSpace URL Configuration"""

from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path('admin/', admin.site.urls),

    # ========== AUTH & SESSIONS ==========
    path('api/auth/', include('authentication.urls')),

    # ========== ACCOUNTS & LEDGER ==========
    path('api/accounts/', include('wallet.urls', namespace='wallet')),

    # ========== SOLS ==========
    path('api/sols/', include('sols.urls', namespace='sols')),

    # ========== NOTIFICATIONS ==========
    path('api/notifications/', include('notifications.urls', namespace='notifications')),
]
