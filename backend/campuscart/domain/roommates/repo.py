"""Roommate post lookups feeding the matcher."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Protocol

from campuscart.domain.identity import UserDirectory
from campuscart.infra.postgres import get_pool

from .models import LOOKING_STATUS, RoommateProfile

_POST_COLUMNS = """
	rp.id, rp.user_id, rp.title, rp.budget_min, rp.budget_max, rp.housing_type,
	rp.preferred_location, rp.cleanliness_level, rp.noise_tolerance, rp.social_level,
	rp.smoking_allowed, rp.pets_allowed, rp.status, rp.expires_at, rp.created_at,
	u.first_name, u.last_name
"""


class RoommatePostRepository(Protocol):
	async def get_open_post(self, user_id: str) -> Optional[RoommateProfile]:
		"""The user's newest post still in looking status; expiry is not checked."""
		...

	async def list_candidates(self, user_id: str, *, limit: int) -> List[RoommateProfile]:
		"""Open posts by other active, verified users, newest first."""
		...


class PostgresRoommatePostRepository:
	async def get_open_post(self, user_id: str) -> Optional[RoommateProfile]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				SELECT {_POST_COLUMNS}
				FROM roommate_posts rp
				JOIN users u ON rp.user_id = u.id
				WHERE rp.user_id::text = $1 AND rp.status = $2
				ORDER BY rp.created_at DESC
				LIMIT 1
				""",
				str(user_id),
				LOOKING_STATUS,
			)
		return RoommateProfile.from_record(row) if row else None

	async def list_candidates(self, user_id: str, *, limit: int) -> List[RoommateProfile]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_POST_COLUMNS}
				FROM roommate_posts rp
				JOIN users u ON rp.user_id = u.id
				WHERE rp.user_id::text != $1
				  AND rp.status = $2
				  AND u.status = 'active'
				  AND u.email_verified = true
				  AND rp.expires_at > CURRENT_TIMESTAMP
				ORDER BY rp.created_at DESC
				LIMIT $3
				""",
				str(user_id),
				LOOKING_STATUS,
				limit,
			)
		return [RoommateProfile.from_record(row) for row in rows]


class InMemoryRoommatePostRepository:
	"""Applies the same candidate filters against an in-memory user directory."""

	def __init__(self, users: UserDirectory, posts: Iterable[RoommateProfile] = ()) -> None:
		self._users = users
		self._posts: List[RoommateProfile] = list(posts)

	def add(self, post: RoommateProfile) -> RoommateProfile:
		if post.created_at is None:
			post.created_at = datetime.now(timezone.utc)
		self._posts.append(post)
		return post

	async def get_open_post(self, user_id: str) -> Optional[RoommateProfile]:
		for post in self._newest_first():
			if post.user_id == str(user_id) and post.status == LOOKING_STATUS:
				return post
		return None

	async def list_candidates(self, user_id: str, *, limit: int) -> List[RoommateProfile]:
		now = datetime.now(timezone.utc)
		candidates: List[RoommateProfile] = []
		for post in self._newest_first():
			if post.user_id == str(user_id) or not post.is_open(now) or post.expires_at is None:
				continue
			owner = await self._users.get_user(post.user_id)
			if owner is None or not owner.is_active or not owner.email_verified:
				continue
			if post.first_name is None:
				post.first_name, post.last_name = owner.first_name, owner.last_name
			candidates.append(post)
			if len(candidates) >= limit:
				break
		return candidates

	def _newest_first(self) -> List[RoommateProfile]:
		epoch = datetime.min.replace(tzinfo=timezone.utc)
		indexed = list(enumerate(self._posts))
		indexed.sort(key=lambda pair: (pair[1].created_at or epoch, pair[0]), reverse=True)
		return [post for _, post in indexed]
