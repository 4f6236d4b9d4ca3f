"""Roommate post snapshot consumed by the compatibility scorer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

LOOKING_STATUS = "looking"

Number = Union[int, float, Decimal]


@dataclass(slots=True)
class RoommateProfile:
	id: str
	user_id: str
	budget_min: Optional[Number] = None
	budget_max: Optional[Number] = None
	housing_type: Optional[str] = None
	preferred_location: Optional[str] = None
	cleanliness_level: Optional[int] = None
	noise_tolerance: Optional[int] = None
	social_level: Optional[int] = None
	smoking_allowed: Optional[bool] = None
	pets_allowed: Optional[bool] = None
	title: Optional[str] = None
	status: str = LOOKING_STATUS
	expires_at: Optional[datetime] = None
	created_at: Optional[datetime] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None

	def is_open(self, now: datetime) -> bool:
		if self.status != LOOKING_STATUS:
			return False
		return self.expires_at is None or self.expires_at > now

	@classmethod
	def from_record(cls, row) -> "RoommateProfile":
		keys = set(row.keys())

		def _get(name: str):
			return row[name] if name in keys else None

		return cls(
			id=str(row["id"]),
			user_id=str(row["user_id"]),
			budget_min=_get("budget_min"),
			budget_max=_get("budget_max"),
			housing_type=_get("housing_type"),
			preferred_location=_get("preferred_location"),
			cleanliness_level=_get("cleanliness_level"),
			noise_tolerance=_get("noise_tolerance"),
			social_level=_get("social_level"),
			smoking_allowed=_get("smoking_allowed"),
			pets_allowed=_get("pets_allowed"),
			title=_get("title"),
			status=_get("status") or LOOKING_STATUS,
			expires_at=_get("expires_at"),
			created_at=_get("created_at"),
			first_name=_get("first_name"),
			last_name=_get("last_name"),
		)


@dataclass(slots=True)
class RoommateMatch:
	profile: RoommateProfile
	compatibility_score: int
