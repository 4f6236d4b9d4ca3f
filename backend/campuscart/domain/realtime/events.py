"""Typed payloads for every inbound and outbound socket event.

Inbound payloads are validated by the model registered for their event name;
outbound payloads serialise with the camelCase keys the web client reads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from campuscart.domain.errors import DomainError


def _coerce_identifier(value: Any) -> Any:
	if isinstance(value, int) and not isinstance(value, bool):
		return str(value)
	if isinstance(value, str):
		return value.strip()
	return value


Identifier = Annotated[str, BeforeValidator(_coerce_identifier), Field(min_length=1, max_length=64)]
OptionalIdentifier = Annotated[Optional[str], BeforeValidator(_coerce_identifier)]


class InvalidEventPayload(DomainError):
	reason = "invalid_payload"
	message = "Invalid event payload"

	def __init__(self, event: str, detail: str) -> None:
		super().__init__(f"Invalid payload for {event}: {detail}")
		self.event = event


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	def dump(self) -> dict:
		return self.model_dump(mode="json", by_alias=True)


class InboundEvent(CamelModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class JoinConversation(InboundEvent):
	recipient_id: Identifier
	item_id: OptionalIdentifier = None


class SendMessage(InboundEvent):
	recipient_id: Identifier
	# Length rules live in the chat service so violations surface as chat errors
	content: Optional[str] = None
	item_id: OptionalIdentifier = None
	roommate_post_id: OptionalIdentifier = None


class TypingSignal(InboundEvent):
	recipient_id: Identifier


class MarkMessagesRead(InboundEvent):
	sender_id: Identifier


class LeaveConversation(InboundEvent):
	recipient_id: Identifier


class SubscribeNotifications(InboundEvent):
	pass


class GetUnreadNotifications(InboundEvent):
	pass


class GetNotifications(InboundEvent):
	page: int = Field(default=1, ge=1)
	limit: int = Field(default=20, ge=1, le=100)
	unread_only: bool = False


class MarkNotificationRead(InboundEvent):
	notification_id: Identifier


class MarkAllNotificationsRead(InboundEvent):
	pass


class RoommateInterest(InboundEvent):
	to_user_id: Identifier
	post_id: Identifier
	message: Optional[str] = Field(default=None, max_length=500)


class JoinRoommateRoom(InboundEvent):
	# The room is always the caller's own; a client supplied userId is ignored
	pass


class LeaveRoommateRoom(InboundEvent):
	pass


class RoommatePostUpdate(InboundEvent):
	post_id: Identifier
	action: str = Field(min_length=1, max_length=32)


class RoommateMatchSignal(InboundEvent):
	to_user_id: Identifier
	post_id: Identifier


INBOUND_EVENTS: Dict[str, Type[InboundEvent]] = {
	"join_conversation": JoinConversation,
	"send_message": SendMessage,
	"typing_start": TypingSignal,
	"typing_stop": TypingSignal,
	"mark_messages_read": MarkMessagesRead,
	"leave_conversation": LeaveConversation,
	"subscribe_notifications": SubscribeNotifications,
	"get_unread_notifications": GetUnreadNotifications,
	"get_notifications": GetNotifications,
	"mark_notification_read": MarkNotificationRead,
	"mark_all_notifications_read": MarkAllNotificationsRead,
	"roommate_interest": RoommateInterest,
	"join_roommate_room": JoinRoommateRoom,
	"leave_roommate_room": LeaveRoommateRoom,
	"roommate_post_update": RoommatePostUpdate,
	"roommate_match": RoommateMatchSignal,
}


def parse_inbound(event: str, payload: Any) -> InboundEvent:
	model = INBOUND_EVENTS.get(event)
	if model is None:
		raise InvalidEventPayload(event, "unknown event")
	if payload is None:
		payload = {}
	if not isinstance(payload, dict):
		raise InvalidEventPayload(event, "payload must be an object")
	try:
		return model.model_validate(payload)
	except ValidationError as exc:
		fields = ", ".join(".".join(str(part) for part in err["loc"]) or "payload" for err in exc.errors())
		raise InvalidEventPayload(event, f"bad fields: {fields}") from None


class ConnectedPayload(CamelModel):
	message: str = "Successfully connected to Campus Cart"
	user: Dict[str, Any]
	timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorPayload(CamelModel):
	message: str
	code: str = "error"


class ConversationPresence(CamelModel):
	user_id: str
	user_name: str
	item_id: Optional[str] = None


class TypingPayload(CamelModel):
	user_id: str
	user_name: str
	is_typing: bool


class RoommateRoomJoined(CamelModel):
	room_name: str
	user_id: str


class RoommatePostUpdated(CamelModel):
	post_id: str
	user_id: str
	action: str
	timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RoommateMatchNotice(CamelModel):
	from_user_id: str
	from_user_name: str
	post_id: str
	message: str = "You have a new roommate match!"
	timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
