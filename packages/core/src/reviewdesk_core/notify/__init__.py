from reviewdesk_core.notify.base import NotificationVariant, Notifier
from reviewdesk_core.notify.log import LogNotifier

__all__ = ["LogNotifier", "NotificationVariant", "Notifier"]
