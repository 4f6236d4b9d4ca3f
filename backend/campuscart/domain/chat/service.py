"""Direct messaging: validation, persistence, fan-out and read state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from campuscart.domain.identity import UserRecord
from campuscart.domain.realtime.channels import conversation_channel, personal_channel
from campuscart.domain.realtime.events import ConversationPresence, SendMessage, TypingPayload
from campuscart.domain.realtime.gateway import RealtimeGateway
from campuscart.obs import metrics as obs_metrics

from .exceptions import MessageEmpty, MessageTooLong
from .models import Message, UnreadMessageCounts
from .repo import MessageRepository
from .schemas import MessagePayload, MessagesReadPayload, NewMessageNotification

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
PREVIEW_LENGTH = 100
HISTORY_LIMIT = 50


def validate_content(content: Optional[str]) -> str:
	"""Return the trimmed body or raise; the length cap applies to the raw text."""
	if content is None or not content.strip():
		obs_metrics.inc_chat_rejected(MessageEmpty.reason)
		raise MessageEmpty()
	if len(content) > MAX_MESSAGE_LENGTH:
		obs_metrics.inc_chat_rejected(MessageTooLong.reason)
		raise MessageTooLong()
	return content.strip()


class MessagingService:
	def __init__(self, repository: MessageRepository, gateway: RealtimeGateway) -> None:
		self._repo = repository
		self._gateway = gateway

	async def send_message(self, sender: UserRecord, event: SendMessage) -> Message:
		content = validate_content(event.content)
		message = await self._repo.create(
			sender_id=sender.id,
			recipient_id=event.recipient_id,
			content=content,
			item_id=event.item_id,
			roommate_post_id=event.roommate_post_id,
		)
		obs_metrics.inc_chat_send()

		try:
			await self._fan_out(sender, event, message, content)
		except Exception:
			# The row is committed; the recipient picks it up from history.
			logger.warning(
				"message fan-out failed",
				exc_info=True,
				extra={"user_id": sender.id, "recipient_id": event.recipient_id, "message_id": message.id},
			)
		logger.info(
			"message sent",
			extra={"user_id": sender.id, "recipient_id": event.recipient_id, "message_id": message.id},
		)
		return message

	async def _fan_out(self, sender: UserRecord, event: SendMessage, message: Message, content: str) -> None:
		channel = conversation_channel(sender.id, event.recipient_id)
		payload = MessagePayload.from_model(message, sender=sender)
		await self._gateway.emit("receive_message", payload.dump(), to=channel)

		if not await self._gateway.user_in_channel(event.recipient_id, channel):
			notice = NewMessageNotification(
				message_id=message.id,
				sender_id=sender.id,
				sender_name=sender.display_name,
				preview=content[:PREVIEW_LENGTH],
				item_id=message.item_id,
				timestamp=message.created_at,
			)
			await self._gateway.emit(
				"new_message_notification",
				notice.dump(),
				to=personal_channel(event.recipient_id),
			)

	async def conversation_history(self, user_id: str, other_id: str, *, limit: int = HISTORY_LIMIT) -> List[Message]:
		"""Most recent messages between the pair, oldest first."""
		recent = await self._repo.recent_between(user_id, other_id, limit=limit)
		return list(reversed(recent))

	async def announce_join(self, sid: str, user: UserRecord, recipient_id: str, item_id: Optional[str] = None) -> None:
		presence = ConversationPresence(user_id=user.id, user_name=user.display_name, item_id=item_id)
		await self._gateway.emit(
			"user_joined_conversation",
			presence.dump(),
			to=conversation_channel(user.id, recipient_id),
			skip_sid=sid,
		)

	async def announce_leave(self, sid: str, user: UserRecord, recipient_id: str) -> None:
		presence = ConversationPresence(user_id=user.id, user_name=user.display_name)
		await self._gateway.emit(
			"user_left_conversation",
			presence.model_dump(mode="json", by_alias=True, exclude={"item_id"}),
			to=conversation_channel(user.id, recipient_id),
			skip_sid=sid,
		)

	async def typing(self, sid: str, user: UserRecord, recipient_id: str, *, is_typing: bool) -> None:
		signal = TypingPayload(user_id=user.id, user_name=user.display_name, is_typing=is_typing)
		await self._gateway.emit(
			"user_typing",
			signal.dump(),
			to=conversation_channel(user.id, recipient_id),
			skip_sid=sid,
		)

	async def mark_read(self, reader: UserRecord, sender_id: str) -> int:
		updated = await self._repo.mark_read(
			sender_id=sender_id,
			recipient_id=reader.id,
			read_at=datetime.now(timezone.utc),
		)
		if updated:
			obs_metrics.inc_chat_read(updated)
			receipt = MessagesReadPayload(
				read_by_user_id=reader.id,
				read_by_user_name=reader.display_name,
				count=updated,
			)
			try:
				await self._gateway.emit("messages_read", receipt.dump(), to=personal_channel(sender_id))
			except Exception:
				logger.warning(
					"read receipt push failed",
					exc_info=True,
					extra={"user_id": reader.id, "sender_id": sender_id, "count": updated},
				)
		return updated

	async def unread_counts(self, user_id: str) -> UnreadMessageCounts:
		by_sender = await self._repo.unread_by_sender(user_id)
		return UnreadMessageCounts(total=sum(by_sender.values()), by_sender=by_sender)
