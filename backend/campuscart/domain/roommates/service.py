"""Ranked roommate matches for a user's open post."""

from __future__ import annotations

import logging
from typing import List

from .models import RoommateMatch
from .repo import RoommatePostRepository
from .scoring import compatibility_score

logger = logging.getLogger(__name__)

CANDIDATE_POOL_SIZE = 100
MIN_MATCH_SCORE = 30
DEFAULT_MATCH_LIMIT = 20


class RoommateMatcher:
	def __init__(self, repository: RoommatePostRepository) -> None:
		self._repo = repository

	async def find_matches(self, user_id: str, limit: int = DEFAULT_MATCH_LIMIT) -> List[RoommateMatch]:
		own_post = await self._repo.get_open_post(user_id)
		if own_post is None:
			return []
		candidates = await self._repo.list_candidates(user_id, limit=CANDIDATE_POOL_SIZE)
		scored = [
			RoommateMatch(profile=candidate, compatibility_score=compatibility_score(own_post, candidate))
			for candidate in candidates
		]
		ranked = sorted(
			(match for match in scored if match.compatibility_score >= MIN_MATCH_SCORE),
			key=lambda match: match.compatibility_score,
			reverse=True,
		)
		logger.info(
			"roommate matches ranked",
			extra={"user_id": str(user_id), "candidates": len(candidates), "matches": len(ranked)},
		)
		return ranked[:max(0, limit)]
