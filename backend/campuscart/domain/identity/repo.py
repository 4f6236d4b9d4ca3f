"""User lookups backing socket authentication and university fan-out."""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from campuscart.infra.postgres import get_pool

from .models import ACTIVE_STATUS, UserRecord


class UserDirectory(Protocol):
	async def get_user(self, user_id: str) -> Optional[UserRecord]:
		...

	async def list_active_user_ids(self, university_id: str) -> List[str]:
		...


class PostgresUserDirectory:
	async def get_user(self, user_id: str) -> Optional[UserRecord]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				SELECT id, first_name, last_name, email, role, status, university_id, email_verified
				FROM users
				WHERE id::text = $1
				""",
				str(user_id),
			)
		return UserRecord.from_record(row) if row else None

	async def list_active_user_ids(self, university_id: str) -> List[str]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT id FROM users WHERE university_id::text = $1 AND status = $2",
				str(university_id),
				ACTIVE_STATUS,
			)
		return [str(row["id"]) for row in rows]


class InMemoryUserDirectory:
	"""Dictionary-backed directory used in tests and local tooling."""

	def __init__(self, users: Iterable[UserRecord] = ()) -> None:
		self._users = {user.id: user for user in users}

	def add(self, user: UserRecord) -> UserRecord:
		self._users[user.id] = user
		return user

	async def get_user(self, user_id: str) -> Optional[UserRecord]:
		return self._users.get(str(user_id))

	async def list_active_user_ids(self, university_id: str) -> List[str]:
		return [
			user.id
			for user in self._users.values()
			if user.university_id == str(university_id) and user.is_active
		]
