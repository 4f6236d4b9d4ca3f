"""Socket.IO namespace serving chat, notification and roommate events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from campuscart.domain.chat.schemas import MessagePayload
from campuscart.domain.errors import DomainError
from campuscart.domain.notifications.schemas import NotificationPageResponse, UnreadCountsPayload
from campuscart.obs import metrics as obs_metrics

from . import events
from .auth import Connection, ConnectionRejected
from .channels import conversation_channel, personal_channel, roommate_channel, university_channel
from .gateway import RealtimeGateway

if TYPE_CHECKING:  # pragma: no cover - typing only
	from campuscart.container import Services

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Any], Awaitable[Dict[str, Any]]]


class MarketplaceNamespace(socketio.AsyncNamespace):
	"""Default namespace; one ``Connection`` per authenticated sid."""

	def __init__(self, services: "Services", gateway: RealtimeGateway, namespace: str = "/") -> None:
		super().__init__(namespace)
		self._services = services
		self._gateway = gateway
		self._sessions: Dict[str, Connection] = {}

	@property
	def connections(self) -> Dict[str, Connection]:
		return self._sessions

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		try:
			user = await self._services.authenticator.authenticate(environ, auth)
		except ConnectionRejected as exc:
			obs_metrics.socket_rejected(exc.reason.value)
			logger.info("socket connection refused", extra={"sid": sid, "reason": exc.reason.value})
			raise
		except Exception:
			obs_metrics.socket_rejected("error")
			logger.exception("socket authentication failed", extra={"sid": sid})
			raise SocketConnectionRefused("Authentication failed") from None

		connection = Connection(sid=sid, user=user)
		self._sessions[sid] = connection
		await self._join(connection, personal_channel(user.id))
		if user.university_id:
			await self._join(connection, university_channel(user.university_id))
		obs_metrics.socket_connected(self.namespace)
		logger.info("socket connected", extra={"sid": sid, "user_id": user.id})
		await self.emit("connected", events.ConnectedPayload(user=user.profile()).dump(), to=sid)

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		connection = self._sessions.pop(sid, None)
		if connection is None:
			return
		obs_metrics.socket_disconnected(self.namespace)
		logger.info("socket disconnected", extra={"sid": sid, "user_id": connection.user_id, "reason": str(reason or "")})

	# chat

	async def on_join_conversation(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "join_conversation", payload, self._join_conversation, "Failed to join conversation")

	async def on_send_message(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "send_message", payload, self._send_message, "Failed to send message")

	async def on_typing_start(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "typing_start", payload, self._typing_start, "Failed to update typing status")

	async def on_typing_stop(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "typing_stop", payload, self._typing_stop, "Failed to update typing status")

	async def on_mark_messages_read(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "mark_messages_read", payload, self._mark_messages_read, "Failed to mark messages as read")

	async def on_leave_conversation(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "leave_conversation", payload, self._leave_conversation, "Failed to leave conversation")

	# notifications

	async def on_subscribe_notifications(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "subscribe_notifications", payload, self._subscribe_notifications, "Failed to subscribe to notifications")

	async def on_get_unread_notifications(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "get_unread_notifications", payload, self._unread_counts, "Failed to fetch notifications")

	async def on_get_notifications(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "get_notifications", payload, self._notification_history, "Failed to fetch notifications")

	async def on_mark_notification_read(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "mark_notification_read", payload, self._mark_notification_read, "Failed to mark notification as read")

	async def on_mark_all_notifications_read(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "mark_all_notifications_read", payload, self._mark_all_notifications_read, "Failed to mark all notifications as read")

	# roommates

	async def on_join_roommate_room(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "join_roommate_room", payload, self._join_roommate_room, "Failed to join roommate room")

	async def on_leave_roommate_room(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "leave_roommate_room", payload, self._leave_roommate_room, "Failed to leave roommate room")

	async def on_roommate_post_update(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "roommate_post_update", payload, self._roommate_post_update, "Failed to update roommate post")

	async def on_roommate_match(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "roommate_match", payload, self._roommate_match, "Failed to send match notification")

	async def on_roommate_interest(self, sid: str, payload: Any = None) -> Dict[str, Any]:
		return await self._dispatch(sid, "roommate_interest", payload, self._roommate_interest, "Failed to send interest notification")

	async def _dispatch(self, sid: str, event: str, payload: Any, handler: Handler, failure_message: str) -> Dict[str, Any]:
		obs_metrics.socket_event(self.namespace, event)
		connection = self._sessions.get(sid)
		if connection is None:
			return await self._fail(sid, "Not authenticated", "unauthenticated")
		try:
			request = events.parse_inbound(event, payload)
			return await handler(connection, request)
		except DomainError as exc:
			logger.info("socket event rejected", extra={"event": event, "user_id": connection.user_id, "reason": exc.reason})
			return await self._fail(sid, exc.message, exc.reason)
		except Exception:
			logger.exception("socket event failed", extra={"event": event, "user_id": connection.user_id})
			return await self._fail(sid, failure_message, "internal_error")

	async def _fail(self, sid: str, message: str, code: str) -> Dict[str, Any]:
		await self.emit("error", events.ErrorPayload(message=message, code=code).dump(), to=sid)
		return {"ok": False, "error": message}

	async def _reply(self, sid: str, event: str, body: Dict[str, Any]) -> Dict[str, Any]:
		await self.emit(event, body, to=sid)
		return {"ok": True, **body}

	async def _join(self, connection: Connection, channel: str) -> None:
		await self._gateway.join(connection.sid, channel)
		connection.channels.add(channel)

	async def _join_conversation(self, connection: Connection, request: events.JoinConversation) -> Dict[str, Any]:
		chat = self._services.chat
		await self._join(connection, conversation_channel(connection.user_id, request.recipient_id))
		await chat.announce_join(connection.sid, connection.user, request.recipient_id, request.item_id)
		history = await chat.conversation_history(connection.user_id, request.recipient_id)
		body = {
			"recipientId": request.recipient_id,
			"itemId": request.item_id,
			"messages": [MessagePayload.from_model(message).dump() for message in history],
		}
		return await self._reply(connection.sid, "conversation_history", body)

	async def _send_message(self, connection: Connection, request: events.SendMessage) -> Dict[str, Any]:
		message = await self._services.chat.send_message(connection.user, request)
		return {"ok": True, "messageId": message.id, "createdAt": message.created_at.isoformat()}

	async def _typing_start(self, connection: Connection, request: events.TypingSignal) -> Dict[str, Any]:
		await self._services.chat.typing(connection.sid, connection.user, request.recipient_id, is_typing=True)
		return {"ok": True}

	async def _typing_stop(self, connection: Connection, request: events.TypingSignal) -> Dict[str, Any]:
		await self._services.chat.typing(connection.sid, connection.user, request.recipient_id, is_typing=False)
		return {"ok": True}

	async def _mark_messages_read(self, connection: Connection, request: events.MarkMessagesRead) -> Dict[str, Any]:
		updated = await self._services.chat.mark_read(connection.user, request.sender_id)
		return {"ok": True, "count": updated}

	async def _leave_conversation(self, connection: Connection, request: events.LeaveConversation) -> Dict[str, Any]:
		channel = conversation_channel(connection.user_id, request.recipient_id)
		await self._gateway.leave(connection.sid, channel)
		connection.channels.discard(channel)
		await self._services.chat.announce_leave(connection.sid, connection.user, request.recipient_id)
		return {"ok": True}

	async def _subscribe_notifications(self, connection: Connection, request: events.SubscribeNotifications) -> Dict[str, Any]:
		body = {"message": "Successfully subscribed to notifications", "userId": connection.user_id}
		return await self._reply(connection.sid, "notification_subscription_confirmed", body)

	async def _unread_counts(self, connection: Connection, request: events.GetUnreadNotifications) -> Dict[str, Any]:
		notifications = await self._services.notifications.unread_count(connection.user_id)
		messages = await self._services.chat.unread_counts(connection.user_id)
		counts = UnreadCountsPayload(notifications=notifications, messages=messages.total)
		return await self._reply(connection.sid, "unread_counts", counts.dump())

	async def _notification_history(self, connection: Connection, request: events.GetNotifications) -> Dict[str, Any]:
		page = await self._services.notifications.history(
			connection.user_id,
			page=request.page,
			limit=request.limit,
			unread_only=request.unread_only,
		)
		return await self._reply(connection.sid, "notifications_history", NotificationPageResponse.from_model(page).dump())

	async def _mark_notification_read(self, connection: Connection, request: events.MarkNotificationRead) -> Dict[str, Any]:
		notification = await self._services.notifications.mark_read(connection.user_id, request.notification_id)
		return await self._reply(connection.sid, "notification_marked_read", {"notificationId": notification.id})

	async def _mark_all_notifications_read(self, connection: Connection, request: events.MarkAllNotificationsRead) -> Dict[str, Any]:
		updated = await self._services.notifications.mark_all_read(connection.user_id)
		return await self._reply(connection.sid, "all_notifications_marked_read", {"count": updated})

	async def _roommate_interest(self, connection: Connection, request: events.RoommateInterest) -> Dict[str, Any]:
		notification = await self._services.notifications.roommate_interest(
			request.to_user_id,
			connection.user,
			post_id=request.post_id,
			message=request.message,
		)
		return {"ok": True, "notificationId": notification.id}

	async def _join_roommate_room(self, connection: Connection, request: events.JoinRoommateRoom) -> Dict[str, Any]:
		channel = roommate_channel(connection.user_id)
		await self._join(connection, channel)
		joined = events.RoommateRoomJoined(room_name=channel, user_id=connection.user_id)
		return await self._reply(connection.sid, "roommate_room_joined", joined.dump())

	async def _leave_roommate_room(self, connection: Connection, request: events.LeaveRoommateRoom) -> Dict[str, Any]:
		channel = roommate_channel(connection.user_id)
		await self._gateway.leave(connection.sid, channel)
		connection.channels.discard(channel)
		return {"ok": True}

	async def _roommate_post_update(self, connection: Connection, request: events.RoommatePostUpdate) -> Dict[str, Any]:
		await self._services.roommate_signals.post_updated(connection.sid, connection.user, request.post_id, request.action)
		return {"ok": True}

	async def _roommate_match(self, connection: Connection, request: events.RoommateMatchSignal) -> Dict[str, Any]:
		await self._services.roommate_signals.match_found(connection.user, request.to_user_id, request.post_id)
		return {"ok": True}
