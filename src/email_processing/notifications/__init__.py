from .dispatcher import (
    ChatNotificationSink,
    NotificationDispatcher,
    NotificationSink,
    WebhookNotificationSink
)

__all__ = [
    'ChatNotificationSink',
    'NotificationDispatcher',
    'NotificationSink',
    'WebhookNotificationSink'
]
