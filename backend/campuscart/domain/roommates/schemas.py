"""Response models for roommate matching."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .models import RoommateMatch


class RoommateMatchResponse(BaseModel):
	id: str
	user_id: str
	title: Optional[str] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	budget_min: Optional[float] = None
	budget_max: Optional[float] = None
	housing_type: Optional[str] = None
	preferred_location: Optional[str] = None
	cleanliness_level: Optional[int] = None
	noise_tolerance: Optional[int] = None
	social_level: Optional[int] = None
	smoking_allowed: Optional[bool] = None
	pets_allowed: Optional[bool] = None
	expires_at: Optional[datetime] = None
	compatibility_score: int

	@classmethod
	def from_model(cls, match: RoommateMatch) -> "RoommateMatchResponse":
		post = match.profile
		return cls(
			id=post.id,
			user_id=post.user_id,
			title=post.title,
			first_name=post.first_name,
			last_name=post.last_name,
			budget_min=float(post.budget_min) if post.budget_min is not None else None,
			budget_max=float(post.budget_max) if post.budget_max is not None else None,
			housing_type=post.housing_type,
			preferred_location=post.preferred_location,
			cleanliness_level=post.cleanliness_level,
			noise_tolerance=post.noise_tolerance,
			social_level=post.social_level,
			smoking_allowed=post.smoking_allowed,
			pets_allowed=post.pets_allowed,
			expires_at=post.expires_at,
			compatibility_score=match.compatibility_score,
		)


class RoommateMatchList(BaseModel):
	matches: List[RoommateMatchResponse]
	count: int
