"""Message storage: asyncpg-backed repository plus an in-memory twin for tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

import ulid

from campuscart.domain.identity import UserDirectory
from campuscart.infra.postgres import get_pool

from .models import Message


class MessageRepository(Protocol):
	async def create(
		self,
		*,
		sender_id: str,
		recipient_id: str,
		content: str,
		item_id: Optional[str] = None,
		roommate_post_id: Optional[str] = None,
	) -> Message:
		...

	async def recent_between(self, user_one: str, user_two: str, *, limit: int) -> List[Message]:
		"""Newest first."""
		...

	async def mark_read(self, *, sender_id: str, recipient_id: str, read_at: datetime) -> int:
		...

	async def unread_by_sender(self, recipient_id: str) -> Dict[str, int]:
		...


def _affected_rows(status: str) -> int:
	# asyncpg returns command tags such as "UPDATE 3"
	try:
		return int(status.rsplit(" ", 1)[-1])
	except (ValueError, AttributeError):
		return 0


class PostgresMessageRepository:
	async def create(
		self,
		*,
		sender_id: str,
		recipient_id: str,
		content: str,
		item_id: Optional[str] = None,
		roommate_post_id: Optional[str] = None,
	) -> Message:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				INSERT INTO messages (sender_id, recipient_id, content, item_id, roommate_post_id)
				VALUES ($1, $2, $3, $4, $5)
				RETURNING id, sender_id, recipient_id, content, item_id, roommate_post_id, read_at, created_at
				""",
				sender_id,
				recipient_id,
				content,
				item_id,
				roommate_post_id,
			)
		return Message.from_record(row)

	async def recent_between(self, user_one: str, user_two: str, *, limit: int) -> List[Message]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT m.id, m.sender_id, m.recipient_id, m.content, m.item_id, m.roommate_post_id,
				       m.read_at, m.created_at,
				       sender.first_name AS sender_name,
				       recipient.first_name AS recipient_name,
				       i.title AS item_title
				FROM messages m
				JOIN users sender ON m.sender_id = sender.id
				JOIN users recipient ON m.recipient_id = recipient.id
				LEFT JOIN items i ON m.item_id = i.id
				WHERE (m.sender_id::text = $1 AND m.recipient_id::text = $2)
				   OR (m.sender_id::text = $2 AND m.recipient_id::text = $1)
				ORDER BY m.created_at DESC
				LIMIT $3
				""",
				str(user_one),
				str(user_two),
				limit,
			)
		return [Message.from_record(row) for row in rows]

	async def mark_read(self, *, sender_id: str, recipient_id: str, read_at: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			status = await conn.execute(
				"""
				UPDATE messages
				SET read_at = $3
				WHERE sender_id::text = $1 AND recipient_id::text = $2 AND read_at IS NULL
				""",
				str(sender_id),
				str(recipient_id),
				read_at,
			)
		return _affected_rows(status)

	async def unread_by_sender(self, recipient_id: str) -> Dict[str, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT sender_id, COUNT(*) AS unread
				FROM messages
				WHERE recipient_id::text = $1 AND read_at IS NULL
				GROUP BY sender_id
				""",
				str(recipient_id),
			)
		return {str(row["sender_id"]): int(row["unread"]) for row in rows}


class InMemoryMessageRepository:
	"""Store used in tests and local tooling when Postgres is unavailable.

	With a user directory, history rows carry participant names the way the
	Postgres join does.
	"""

	def __init__(self, users: Optional[UserDirectory] = None) -> None:
		self._lock = asyncio.Lock()
		self._messages: List[Message] = []
		self._users = users

	@property
	def messages(self) -> List[Message]:
		return list(self._messages)

	async def create(
		self,
		*,
		sender_id: str,
		recipient_id: str,
		content: str,
		item_id: Optional[str] = None,
		roommate_post_id: Optional[str] = None,
	) -> Message:
		async with self._lock:
			message = Message(
				id=str(ulid.new()),
				sender_id=str(sender_id),
				recipient_id=str(recipient_id),
				content=content,
				created_at=datetime.now(timezone.utc),
				item_id=item_id,
				roommate_post_id=roommate_post_id,
			)
			self._messages.append(message)
			return message

	async def recent_between(self, user_one: str, user_two: str, *, limit: int) -> List[Message]:
		async with self._lock:
			matching = [m for m in reversed(self._messages) if m.is_between(user_one, user_two)][:limit]
		if self._users is not None:
			for message in matching:
				message.sender_name = await self._first_name(message.sender_id)
				message.recipient_name = await self._first_name(message.recipient_id)
		return matching

	async def mark_read(self, *, sender_id: str, recipient_id: str, read_at: datetime) -> int:
		async with self._lock:
			updated = 0
			for message in self._messages:
				if message.sender_id == str(sender_id) and message.recipient_id == str(recipient_id) and message.read_at is None:
					message.read_at = read_at
					updated += 1
			return updated

	async def unread_by_sender(self, recipient_id: str) -> Dict[str, int]:
		async with self._lock:
			counts: Dict[str, int] = {}
			for message in self._messages:
				if message.recipient_id == str(recipient_id) and message.read_at is None:
					counts[message.sender_id] = counts.get(message.sender_id, 0) + 1
			return counts

	async def _first_name(self, user_id: str) -> Optional[str]:
		user = await self._users.get_user(user_id)
		return user.first_name if user else None
