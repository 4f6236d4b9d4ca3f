from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from campuscart.domain.realtime.auth import ConnectionRejected, RejectReason
from campuscart.domain.realtime.namespace import MarketplaceNamespace


def _environ(token: str | None = None) -> dict:
	headers = [(b"authorization", f"Bearer {token}".encode())] if token else []
	return {"asgi.scope": {"headers": headers, "query_string": b""}}


def _direct(namespace, event: str) -> list:
	return [call.args[1] for call in namespace.emit.await_args_list if call.args[0] == event]


@pytest.fixture
def namespace(services, gateway):
	server = socketio.AsyncServer(async_mode="asgi")
	handler = MarketplaceNamespace(services, gateway)
	server.register_namespace(handler)
	handler.emit = AsyncMock()
	return handler


@pytest.fixture
def connect(namespace, make_token):
	async def _connect(sid: str, user_id: str) -> None:
		await namespace.trigger_event("connect", sid, _environ(make_token(user_id)))

	return _connect


@pytest.mark.asyncio
async def test_connect_joins_personal_and_university_channels(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")

	assert gateway.members["user:u-alice"] == {"sid-alice"}
	assert gateway.members["university:uni-1"] == {"sid-alice"}
	assert namespace.connections["sid-alice"].channels == {"user:u-alice", "university:uni-1"}
	connected = _direct(namespace, "connected")
	assert connected[0]["user"]["id"] == "u-alice"
	assert connected[0]["user"]["firstName"] == "Alice"
	assert "timestamp" in connected[0]


@pytest.mark.asyncio
async def test_connect_accepts_token_in_auth_payload(namespace, make_token):
	await namespace.trigger_event("connect", "sid-1", _environ(), {"token": make_token("u-bob")})
	assert namespace.connections["sid-1"].user_id == "u-bob"


@pytest.mark.asyncio
async def test_multiple_devices_share_the_personal_channel(gateway, connect):
	await connect("sid-phone", "u-bob")
	await connect("sid-laptop", "u-bob")
	assert gateway.members["user:u-bob"] == {"sid-phone", "sid-laptop"}


@pytest.mark.asyncio
async def test_connect_without_token_is_refused(namespace, gateway):
	with pytest.raises(ConnectionRejected) as excinfo:
		await namespace.trigger_event("connect", "sid-1", _environ())
	assert excinfo.value.reason is RejectReason.TOKEN_MISSING
	assert namespace.connections == {}
	assert gateway.members == {}


@pytest.mark.asyncio
async def test_connect_for_inactive_account_is_refused(namespace, make_token):
	with pytest.raises(ConnectionRejected) as excinfo:
		await namespace.trigger_event("connect", "sid-1", _environ(make_token("u-dave")))
	assert excinfo.value.reason is RejectReason.ACCOUNT_INACTIVE


@pytest.mark.asyncio
async def test_unexpected_auth_failure_refuses_connection(namespace, services, make_token):
	services.authenticator = SimpleNamespace(authenticate=AsyncMock(side_effect=RuntimeError("db down")))
	with pytest.raises(SocketConnectionRefused):
		await namespace.trigger_event("connect", "sid-1", _environ(make_token("u-alice")))
	assert namespace.connections == {}


@pytest.mark.asyncio
async def test_conversation_flow(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")
	await connect("sid-bob", "u-bob")

	joined = await namespace.trigger_event("join_conversation", "sid-bob", {"recipientId": "u-alice", "itemId": "item-3"})
	assert joined["ok"] is True
	assert joined["messages"] == []
	presence = gateway.events("user_joined_conversation")[0]
	assert presence.to == "chat:u-alice:u-bob"
	assert presence.skip_sid == "sid-bob"
	assert presence.payload == {"userId": "u-bob", "userName": "Bob", "itemId": "item-3"}

	ack = await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": "  Still selling?  "})

	assert ack["ok"] is True
	delivered = gateway.events("receive_message")
	assert delivered[0].payload["id"] == ack["messageId"]
	assert delivered[0].payload["content"] == "Still selling?"
	assert ack["createdAt"].startswith(delivered[0].payload["createdAt"][:19])
	# bob is looking at the conversation, so no badge
	assert gateway.events("new_message_notification") == []

	history = await namespace.trigger_event("join_conversation", "sid-alice", {"recipientId": "u-bob"})
	assert [m["content"] for m in history["messages"]] == ["Still selling?"]
	assert _direct(namespace, "conversation_history")[-1]["messages"][0]["senderName"] == "Alice"


@pytest.mark.asyncio
async def test_recipient_outside_conversation_gets_badge(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")
	await connect("sid-bob", "u-bob")

	await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": "hello"})

	notices = gateway.events("new_message_notification")
	assert len(notices) == 1
	assert notices[0].to == "user:u-bob"
	assert notices[0].payload["preview"] == "hello"


@pytest.mark.asyncio
async def test_empty_message_emits_error_and_persists_nothing(namespace, gateway, message_repo, connect):
	await connect("sid-alice", "u-alice")

	ack = await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": "   "})

	assert ack == {"ok": False, "error": "Message content is required"}
	errors = _direct(namespace, "error")
	assert errors == [{"message": "Message content is required", "code": "message_empty"}]
	assert namespace.emit.await_args_list[-1].kwargs["to"] == "sid-alice"
	assert message_repo.messages == []
	assert gateway.events("receive_message") == []


@pytest.mark.asyncio
async def test_too_long_message_is_rejected(namespace, connect):
	await connect("sid-alice", "u-alice")
	ack = await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": "x" * 2001})
	assert ack["error"] == "Message too long (max 2000 characters)"


@pytest.mark.asyncio
async def test_malformed_payload_is_rejected(namespace, connect):
	await connect("sid-alice", "u-alice")
	ack = await namespace.trigger_event("send_message", "sid-alice", {"content": "hi"})
	assert ack["ok"] is False
	assert _direct(namespace, "error")[0]["code"] == "invalid_payload"


@pytest.mark.asyncio
async def test_events_from_unknown_sid_are_rejected(namespace):
	ack = await namespace.trigger_event("typing_start", "sid-ghost", {"recipientId": "u-bob"})
	assert ack == {"ok": False, "error": "Not authenticated"}


@pytest.mark.asyncio
async def test_storage_failure_reports_generic_error(namespace, gateway, message_repo, connect):
	await connect("sid-alice", "u-alice")
	message_repo.create = AsyncMock(side_effect=RuntimeError("database unavailable"))

	ack = await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": "hello"})

	assert ack == {"ok": False, "error": "Failed to send message"}
	assert _direct(namespace, "error")[0]["code"] == "internal_error"
	assert gateway.events("receive_message") == []


@pytest.mark.asyncio
async def test_typing_relay(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")
	await namespace.trigger_event("typing_start", "sid-alice", {"recipientId": "u-bob"})
	await namespace.trigger_event("typing_stop", "sid-alice", {"recipientId": "u-bob"})

	flags = [event.payload["isTyping"] for event in gateway.events("user_typing")]
	assert flags == [True, False]


@pytest.mark.asyncio
async def test_mark_read_and_unread_counts(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")
	await connect("sid-bob", "u-bob")
	for text in ("one", "two"):
		await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": text})

	counts = await namespace.trigger_event("get_unread_notifications", "sid-bob")
	assert counts == {"ok": True, "notifications": 0, "messages": 2}
	assert _direct(namespace, "unread_counts") == [{"notifications": 0, "messages": 2}]

	first = await namespace.trigger_event("mark_messages_read", "sid-bob", {"senderId": "u-alice"})
	second = await namespace.trigger_event("mark_messages_read", "sid-bob", {"senderId": "u-alice"})
	assert (first["count"], second["count"]) == (2, 0)
	receipts = gateway.events("messages_read")
	assert len(receipts) == 1
	assert receipts[0].to == "user:u-alice"


@pytest.mark.asyncio
async def test_notification_events(namespace, services, connect):
	await connect("sid-bob", "u-bob")
	first = await services.notifications.system("u-bob", "Welcome", "Thanks for joining")
	await services.notifications.system("u-bob", "Tip", "Verify your email")

	confirmed = await namespace.trigger_event("subscribe_notifications", "sid-bob")
	assert confirmed["userId"] == "u-bob"

	page = await namespace.trigger_event("get_notifications", "sid-bob", {"page": 1, "limit": 1})
	assert [n["title"] for n in page["notifications"]] == ["Tip"]
	assert page["hasMore"] is True

	marked = await namespace.trigger_event("mark_notification_read", "sid-bob", {"notificationId": first.id})
	assert marked == {"ok": True, "notificationId": first.id}

	missing = await namespace.trigger_event("mark_notification_read", "sid-bob", {"notificationId": "nope"})
	assert missing == {"ok": False, "error": "Notification not found"}

	everything = await namespace.trigger_event("mark_all_notifications_read", "sid-bob")
	assert everything["count"] == 1
	assert _direct(namespace, "all_notifications_marked_read") == [{"count": 1}]


@pytest.mark.asyncio
async def test_roommate_interest_notifies_post_owner(namespace, gateway, notification_repo, connect):
	await connect("sid-alice", "u-alice")

	ack = await namespace.trigger_event(
		"roommate_interest",
		"sid-alice",
		{"toUserId": "u-bob", "postId": "post-7", "message": "Still looking?"},
	)

	assert ack["ok"] is True
	stored = notification_repo.notifications[0]
	assert stored.user_id == "u-bob"
	assert stored.message == "Still looking?"
	pushed = gateway.events("notification")[0]
	assert pushed.to == "user:u-bob"
	assert pushed.payload["data"]["postId"] == "post-7"


@pytest.mark.asyncio
async def test_leave_and_disconnect(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")
	await namespace.trigger_event("join_conversation", "sid-alice", {"recipientId": "u-bob"})

	await namespace.trigger_event("leave_conversation", "sid-alice", {"recipientId": "u-bob"})

	assert "sid-alice" not in gateway.members["chat:u-alice:u-bob"]
	assert "chat:u-alice:u-bob" not in namespace.connections["sid-alice"].channels
	assert gateway.events("user_left_conversation")[0].skip_sid == "sid-alice"

	await namespace.trigger_event("disconnect", "sid-alice")
	assert "sid-alice" not in namespace.connections


@pytest.mark.asyncio
async def test_send_ack_survives_transport_failure(namespace, gateway, message_repo, connect):
	await connect("sid-alice", "u-alice")
	gateway.emit = AsyncMock(side_effect=ConnectionError("redis down"))

	ack = await namespace.trigger_event("send_message", "sid-alice", {"recipientId": "u-bob", "content": "hello"})

	assert ack["ok"] is True
	assert ack["messageId"] == message_repo.messages[0].id
	assert len(message_repo.messages) == 1
	assert _direct(namespace, "error") == []


@pytest.mark.asyncio
async def test_roommate_room_join_and_leave(namespace, gateway, connect):
	await connect("sid-bob", "u-bob")

	joined = await namespace.trigger_event("join_roommate_room", "sid-bob", {"userId": "u-alice"})

	assert joined == {"ok": True, "roomName": "roommate:u-bob", "userId": "u-bob"}
	assert _direct(namespace, "roommate_room_joined") == [{"roomName": "roommate:u-bob", "userId": "u-bob"}]
	assert "sid-bob" in gateway.members["roommate:u-bob"]
	assert "roommate:u-alice" not in gateway.members

	left = await namespace.trigger_event("leave_roommate_room", "sid-bob")
	assert left == {"ok": True}
	assert "sid-bob" not in gateway.members["roommate:u-bob"]
	assert "roommate:u-bob" not in namespace.connections["sid-bob"].channels


@pytest.mark.asyncio
async def test_roommate_post_update_is_broadcast_to_others(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")

	ack = await namespace.trigger_event("roommate_post_update", "sid-alice", {"postId": "post-3", "action": "closed"})

	assert ack == {"ok": True}
	broadcast = gateway.events("roommate_post_updated")
	assert len(broadcast) == 1
	assert broadcast[0].to is None
	assert broadcast[0].skip_sid == "sid-alice"
	assert broadcast[0].payload["postId"] == "post-3"
	assert broadcast[0].payload["userId"] == "u-alice"
	assert broadcast[0].payload["action"] == "closed"


@pytest.mark.asyncio
async def test_roommate_post_update_requires_action(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")

	ack = await namespace.trigger_event("roommate_post_update", "sid-alice", {"postId": "post-3"})

	assert ack["ok"] is False
	assert _direct(namespace, "error")[0]["code"] == "invalid_payload"
	assert gateway.events("roommate_post_updated") == []


@pytest.mark.asyncio
async def test_roommate_match_relays_to_target_room(namespace, gateway, connect):
	await connect("sid-alice", "u-alice")

	ack = await namespace.trigger_event("roommate_match", "sid-alice", {"toUserId": "u-bob", "postId": "post-3"})

	assert ack == {"ok": True}
	relayed = gateway.events("roommate_match_notification")
	assert len(relayed) == 1
	assert relayed[0].to == "roommate:u-bob"
	assert relayed[0].payload["fromUserId"] == "u-alice"
	assert relayed[0].payload["postId"] == "post-3"
	assert relayed[0].payload["message"] == "You have a new roommate match!"
