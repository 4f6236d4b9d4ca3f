"""Notification errors."""

from __future__ import annotations

from campuscart.domain.errors import DomainError


class NotificationError(DomainError):
	reason = "notification_error"
	message = "Notification request failed"


class NotificationNotFound(NotificationError):
	reason = "not_found"
	message = "Notification not found"
