import inspect
from unittest.mock import AsyncMock, MagicMock

import pytest
import socketio

from campuscart.domain.realtime.gateway import SocketIOGateway


def _server(participants=(), rooms=None):
	server = MagicMock()
	server.enter_room = AsyncMock()
	server.leave_room = AsyncMock()
	server.emit = AsyncMock()
	server.manager.get_participants.side_effect = lambda namespace, room: iter(list(participants))
	server.rooms.side_effect = lambda sid, namespace=None: (rooms or {}).get(sid, [])
	return server


@pytest.mark.asyncio
async def test_join_leave_and_emit_target_the_namespace():
	server = _server()
	gateway = SocketIOGateway(server)

	await gateway.join("sid-1", "user:u-alice")
	await gateway.leave("sid-1", "user:u-alice")
	await gateway.emit("notification", {"id": "n-1"}, to="user:u-alice", skip_sid="sid-2")

	server.enter_room.assert_awaited_once_with("sid-1", "user:u-alice", namespace="/")
	server.leave_room.assert_awaited_once_with("sid-1", "user:u-alice", namespace="/")
	server.emit.assert_awaited_once_with("notification", {"id": "n-1"}, to="user:u-alice", skip_sid="sid-2", namespace="/")


@pytest.mark.asyncio
async def test_user_in_channel_checks_every_connection_of_the_user():
	server = _server(
		participants=[("sid-phone", "eio-1"), ("sid-laptop", "eio-2")],
		rooms={"sid-phone": ["sid-phone", "user:u-bob"], "sid-laptop": ["sid-laptop", "user:u-bob", "chat:u-alice:u-bob"]},
	)
	gateway = SocketIOGateway(server)

	assert await gateway.user_in_channel("u-bob", "chat:u-alice:u-bob") is True
	assert await gateway.user_in_channel("u-bob", "chat:u-bob:u-carol") is False
	server.manager.get_participants.assert_called_with("/", "user:u-bob")


@pytest.mark.asyncio
async def test_user_in_channel_false_when_offline():
	gateway = SocketIOGateway(_server())
	assert await gateway.user_in_channel("u-bob", "chat:u-alice:u-bob") is False


async def _register(server: socketio.AsyncServer, eio_sid: str) -> str:
	# AsyncManager.connect is a coroutine on current releases
	sid = server.manager.connect(eio_sid, "/")
	if inspect.isawaitable(sid):
		sid = await sid
	return sid


@pytest.mark.asyncio
async def test_membership_against_a_real_server():
	server = socketio.AsyncServer(async_mode="asgi")
	gateway = SocketIOGateway(server)
	phone = await _register(server, "eio-phone")
	laptop = await _register(server, "eio-laptop")
	for sid in (phone, laptop):
		await gateway.join(sid, "user:u-bob")
	await gateway.join(laptop, "chat:u-alice:u-bob")

	assert await gateway.user_in_channel("u-bob", "chat:u-alice:u-bob") is True
	assert await gateway.user_in_channel("u-alice", "chat:u-alice:u-bob") is False

	await gateway.leave(laptop, "chat:u-alice:u-bob")
	assert await gateway.user_in_channel("u-bob", "chat:u-alice:u-bob") is False
	assert await gateway.user_in_channel("u-bob", "user:u-bob") is True
