from django.urls import path
from . import views

app_name = 'sols'

urlpatterns = [
    path('', views.sol_list, name='list'),
    path('discover/', views.discover, name='discover'),
    path('analytics/personal/', views.personal_analytics, name='personal_analytics'),
    path('join/', views.join, name='join'),
    path('<uuid:sol_id>/', views.sol_detail, name='detail'),
    path('<uuid:sol_id>/payment/', views.make_payment, name='payment'),
    path('<uuid:sol_id>/leave/', views.leave, name='leave'),
    path('<uuid:sol_id>/cancel/', views.cancel, name='cancel'),
    path('<uuid:sol_id>/pause/', views.pause, name='pause'),
    path('<uuid:sol_id>/resume/', views.resume, name='resume'),
]
