"""Publishing seam between domain services and the Socket.IO server."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import socketio

from .channels import personal_channel


class RealtimeGateway(Protocol):
	async def join(self, sid: str, channel: str) -> None:
		...

	async def leave(self, sid: str, channel: str) -> None:
		...

	async def emit(self, event: str, payload: Any, *, to: Optional[str] = None, skip_sid: Optional[str] = None) -> None:
		"""Publish to a channel or a single sid; ``to=None`` reaches every client."""
		...

	async def user_in_channel(self, user_id: str, channel: str) -> bool:
		"""True when any of the user's live connections has joined ``channel``."""
		...


class SocketIOGateway:
	"""Gateway over a python-socketio AsyncServer.

	Membership checks read the local client manager, so with a Redis-backed
	manager only connections held by this worker are considered.
	"""

	def __init__(self, server: socketio.AsyncServer, namespace: str = "/") -> None:
		self._server = server
		self._namespace = namespace

	async def join(self, sid: str, channel: str) -> None:
		await self._server.enter_room(sid, channel, namespace=self._namespace)

	async def leave(self, sid: str, channel: str) -> None:
		await self._server.leave_room(sid, channel, namespace=self._namespace)

	async def emit(self, event: str, payload: Any, *, to: Optional[str] = None, skip_sid: Optional[str] = None) -> None:
		await self._server.emit(event, payload, to=to, skip_sid=skip_sid, namespace=self._namespace)

	async def user_in_channel(self, user_id: str, channel: str) -> bool:
		participants = self._server.manager.get_participants(self._namespace, personal_channel(user_id))
		for sid, _eio_sid in participants:
			if channel in self._server.rooms(sid, namespace=self._namespace):
				return True
		return False
