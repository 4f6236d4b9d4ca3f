"""Notification domain exports."""

from .dispatcher import NotificationDispatcher
from .models import Notification, NotificationPage, NotificationType
from .repo import InMemoryNotificationRepository, NotificationRepository, PostgresNotificationRepository
from .schemas import NotificationContent

__all__ = [
	"InMemoryNotificationRepository",
	"Notification",
	"NotificationContent",
	"NotificationDispatcher",
	"NotificationPage",
	"NotificationRepository",
	"NotificationType",
	"PostgresNotificationRepository",
]
