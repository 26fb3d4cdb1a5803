from django.urls import path
from . import views

app_name = 'wallet'

urlpatterns = [
    path('', views.accounts, name='accounts'),
    path('<int:account_id>/deposit/', views.deposit, name='deposit'),
    path('<int:account_id>/transactions/', views.transactions, name='transactions'),
]
