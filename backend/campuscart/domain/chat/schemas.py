"""Pydantic payloads for chat events and endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from campuscart.domain.identity import UserRecord
from campuscart.domain.realtime.events import CamelModel

from .models import Message, UnreadMessageCounts


class MessagePayload(CamelModel):
	id: str
	sender_id: str
	recipient_id: str
	content: str
	item_id: Optional[str] = None
	roommate_post_id: Optional[str] = None
	created_at: datetime
	read_at: Optional[datetime] = None
	sender_name: Optional[str] = None
	sender_last_name: Optional[str] = None
	recipient_name: Optional[str] = None
	item_title: Optional[str] = None

	@classmethod
	def from_model(cls, message: Message, *, sender: UserRecord | None = None) -> "MessagePayload":
		return cls(
			id=message.id,
			sender_id=message.sender_id,
			recipient_id=message.recipient_id,
			content=message.content,
			item_id=message.item_id,
			roommate_post_id=message.roommate_post_id,
			created_at=message.created_at,
			read_at=message.read_at,
			sender_name=sender.first_name if sender else message.sender_name,
			sender_last_name=sender.last_name if sender else None,
			recipient_name=message.recipient_name,
			item_title=message.item_title,
		)


class NewMessageNotification(CamelModel):
	message_id: str
	sender_id: str
	sender_name: str
	preview: str
	item_id: Optional[str] = None
	timestamp: datetime


class MessagesReadPayload(CamelModel):
	read_by_user_id: str
	read_by_user_name: str
	count: int


class UnreadMessagesResponse(CamelModel):
	total: int
	by_sender: Dict[str, int]

	@classmethod
	def from_model(cls, counts: UnreadMessageCounts) -> "UnreadMessagesResponse":
		return cls(total=counts.total, by_sender=dict(counts.by_sender))
