"""Read-only user snapshot consumed by the real-time core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ACTIVE_STATUS = "active"


@dataclass(slots=True)
class UserRecord:
	id: str
	first_name: str
	last_name: str = ""
	email: Optional[str] = None
	role: str = "student"
	status: str = ACTIVE_STATUS
	university_id: Optional[str] = None
	email_verified: bool = False

	@property
	def is_active(self) -> bool:
		return self.status == ACTIVE_STATUS

	@property
	def display_name(self) -> str:
		return self.first_name

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}".strip()

	def profile(self) -> dict:
		"""Client-facing profile attached to the ``connected`` event."""
		return {
			"id": self.id,
			"firstName": self.first_name,
			"lastName": self.last_name,
			"role": self.role,
			"universityId": self.university_id,
			"emailVerified": self.email_verified,
		}

	@classmethod
	def from_record(cls, row) -> "UserRecord":
		university_id = row["university_id"]
		return cls(
			id=str(row["id"]),
			first_name=row["first_name"] or "",
			last_name=row["last_name"] or "",
			email=row["email"],
			role=row["role"] or "student",
			status=row["status"],
			university_id=str(university_id) if university_id is not None else None,
			email_verified=bool(row["email_verified"]),
		)
