"""Notification storage backends."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

import ulid

from campuscart.infra.postgres import get_pool

from .models import Notification

_COLUMNS = "id, user_id, type, title, message, data, read_at, created_at"


class NotificationRepository(Protocol):
	async def create(self, *, user_id: str, type: str, title: str, message: str, data: Dict[str, Any]) -> Notification:
		...

	async def list_for_user(
		self, user_id: str, *, limit: int, offset: int, unread_only: bool = False
	) -> Tuple[List[Notification], int]:
		"""Newest first, plus the total matching the same filter."""
		...

	async def count_unread(self, user_id: str) -> int:
		...

	async def mark_read(self, user_id: str, notification_id: str, read_at: datetime) -> Optional[Notification]:
		...

	async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
		...

	async def delete(self, user_id: str, notification_id: str) -> bool:
		...

	async def delete_read(self, user_id: str) -> int:
		...


def _affected_rows(status: str) -> int:
	try:
		return int(status.rsplit(" ", 1)[-1])
	except (ValueError, AttributeError):
		return 0


class PostgresNotificationRepository:
	async def create(self, *, user_id: str, type: str, title: str, message: str, data: Dict[str, Any]) -> Notification:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO notifications (user_id, type, title, message, data, read_at)
				VALUES ($1, $2, $3, $4, $5::jsonb, NULL)
				RETURNING {_COLUMNS}
				""",
				user_id,
				type,
				title,
				message,
				json.dumps(data or {}),
			)
		return Notification.from_record(row)

	async def list_for_user(
		self, user_id: str, *, limit: int, offset: int, unread_only: bool = False
	) -> Tuple[List[Notification], int]:
		where = "user_id::text = $1"
		if unread_only:
			where += " AND read_at IS NULL"
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM notifications
				WHERE {where}
				ORDER BY created_at DESC
				LIMIT $2 OFFSET $3
				""",
				str(user_id),
				limit,
				offset,
			)
			total = await conn.fetchval(f"SELECT COUNT(*) FROM notifications WHERE {where}", str(user_id))
		return [Notification.from_record(row) for row in rows], int(total or 0)

	async def count_unread(self, user_id: str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			count = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE user_id::text = $1 AND read_at IS NULL",
				str(user_id),
			)
		return int(count or 0)

	async def mark_read(self, user_id: str, notification_id: str, read_at: datetime) -> Optional[Notification]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				UPDATE notifications
				SET read_at = COALESCE(read_at, $3)
				WHERE id::text = $1 AND user_id::text = $2
				RETURNING {_COLUMNS}
				""",
				str(notification_id),
				str(user_id),
				read_at,
			)
		return Notification.from_record(row) if row else None

	async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			status = await conn.execute(
				"UPDATE notifications SET read_at = $2 WHERE user_id::text = $1 AND read_at IS NULL",
				str(user_id),
				read_at,
			)
		return _affected_rows(status)

	async def delete(self, user_id: str, notification_id: str) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			status = await conn.execute(
				"DELETE FROM notifications WHERE id::text = $1 AND user_id::text = $2",
				str(notification_id),
				str(user_id),
			)
		return _affected_rows(status) > 0

	async def delete_read(self, user_id: str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			status = await conn.execute(
				"DELETE FROM notifications WHERE user_id::text = $1 AND read_at IS NOT NULL",
				str(user_id),
			)
		return _affected_rows(status)


class InMemoryNotificationRepository:
	"""List-backed store used in tests and local tooling."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._rows: List[Notification] = []

	@property
	def notifications(self) -> List[Notification]:
		return list(self._rows)

	async def create(self, *, user_id: str, type: str, title: str, message: str, data: Dict[str, Any]) -> Notification:
		async with self._lock:
			notification = Notification(
				id=str(ulid.new()),
				user_id=str(user_id),
				type=type,
				title=title,
				message=message,
				created_at=datetime.now(timezone.utc),
				data=dict(data or {}),
			)
			self._rows.append(notification)
			return notification

	async def list_for_user(
		self, user_id: str, *, limit: int, offset: int, unread_only: bool = False
	) -> Tuple[List[Notification], int]:
		async with self._lock:
			rows = [
				row
				for row in reversed(self._rows)
				if row.user_id == str(user_id) and not (unread_only and row.is_read)
			]
			return rows[offset:offset + limit], len(rows)

	async def count_unread(self, user_id: str) -> int:
		async with self._lock:
			return sum(1 for row in self._rows if row.user_id == str(user_id) and not row.is_read)

	async def mark_read(self, user_id: str, notification_id: str, read_at: datetime) -> Optional[Notification]:
		async with self._lock:
			for row in self._rows:
				if row.id == str(notification_id) and row.user_id == str(user_id):
					if row.read_at is None:
						row.read_at = read_at
					return row
			return None

	async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
		async with self._lock:
			updated = 0
			for row in self._rows:
				if row.user_id == str(user_id) and row.read_at is None:
					row.read_at = read_at
					updated += 1
			return updated

	async def delete(self, user_id: str, notification_id: str) -> bool:
		async with self._lock:
			for index, row in enumerate(self._rows):
				if row.id == str(notification_id) and row.user_id == str(user_id):
					del self._rows[index]
					return True
			return False

	async def delete_read(self, user_id: str) -> int:
		async with self._lock:
			keep = [row for row in self._rows if not (row.user_id == str(user_id) and row.is_read)]
			removed = len(self._rows) - len(keep)
			self._rows = keep
			return removed
