from django.core.paginator import Paginator
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from authentication.decorators import api_login_required
from authentication.utils.api import json_error, json_ok
from .models import Notification
from .services import NotificationService, notification_to_dict


@require_GET
@api_login_required
def notification_list(request):
    notifications = Notification.objects.filter(user=request.user)
    if request.GET.get('unread') in ('1', 'true'):
        notifications = notifications.filter(is_read=False)

    paginator = Paginator(notifications, 20)
    page = paginator.get_page(request.GET.get('page'))

    return json_ok(
        [notification_to_dict(n) for n in page],
        unread_count=Notification.objects.filter(user=request.user, is_read=False).count(),
        pagination={'page': page.number, 'pages': paginator.num_pages, 'total': paginator.count},
    )


@csrf_exempt
@require_POST
@api_login_required
def mark_read(request, notification_id):
    if not NotificationService.mark_as_read(request.user, notification_id):
        return json_error('not_found', 'Notification not found', 404)
    return json_ok()


@csrf_exempt
@require_POST
@api_login_required
def mark_all_read(request):
    count = NotificationService.mark_all_as_read(request.user)
    return json_ok({'updated': count})
