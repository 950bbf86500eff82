"""Outbound customer and staff notifications"""

from kwikqueue.notifications.dispatcher import NotificationDispatcher, get_dispatcher
from kwikqueue.notifications.notifier import (
    Notifier,
    MockNotifier,
    SmsHubNotifier,
    TelegramNotifier,
    TwilioNotifier,
    get_sms_notifier,
    normalize_phone,
)
from kwikqueue.notifications.templates import (
    render_sms,
    render_staff_alert,
    status_label,
    tracking_echo,
)

__all__ = [
    "NotificationDispatcher",
    "get_dispatcher",
    "Notifier",
    "MockNotifier",
    "SmsHubNotifier",
    "TelegramNotifier",
    "TwilioNotifier",
    "get_sms_notifier",
    "normalize_phone",
    "render_sms",
    "render_staff_alert",
    "status_label",
    "tracking_echo",
]
