"""Notification payloads shared by the socket namespace and the REST API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from campuscart.domain.realtime.events import CamelModel

from .models import Notification, NotificationPage, NotificationType


class NotificationContent(CamelModel):
	"""What a producer hands to the dispatcher."""

	type: NotificationType = NotificationType.SYSTEM
	title: str = Field(min_length=1, max_length=200)
	message: str = Field(min_length=1, max_length=2000)
	data: Dict[str, Any] = Field(default_factory=dict)


class NotificationPayload(CamelModel):
	id: str
	type: str
	title: str
	message: str
	data: Dict[str, Any]
	read_at: Optional[datetime] = None
	created_at: datetime

	@classmethod
	def from_model(cls, notification: Notification) -> "NotificationPayload":
		return cls(
			id=notification.id,
			type=notification.type,
			title=notification.title,
			message=notification.message,
			data=dict(notification.data),
			read_at=notification.read_at,
			created_at=notification.created_at,
		)


class BroadcastPayload(CamelModel):
	type: str
	title: str
	message: str
	data: Dict[str, Any]
	timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationPageResponse(CamelModel):
	notifications: List[NotificationPayload]
	page: int
	limit: int
	total: int
	pages: int
	has_more: bool

	@classmethod
	def from_model(cls, page: NotificationPage) -> "NotificationPageResponse":
		return cls(
			notifications=[NotificationPayload.from_model(item) for item in page.items],
			page=page.page,
			limit=page.limit,
			total=page.total,
			pages=page.pages,
			has_more=page.has_more,
		)


class UnreadCountsPayload(CamelModel):
	notifications: int
	messages: int


class AdminNotificationRequest(NotificationContent):
	"""System notice for one university, or a broadcast when ``audience`` is ``all``."""

	audience: Literal["university", "all"] = "university"
	university_id: Optional[str] = None
