"""Domain models for direct messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional


@dataclass(slots=True)
class Message:
	id: str
	sender_id: str
	recipient_id: str
	content: str
	created_at: datetime
	item_id: Optional[str] = None
	roommate_post_id: Optional[str] = None
	read_at: Optional[datetime] = None
	sender_name: Optional[str] = None
	recipient_name: Optional[str] = None
	item_title: Optional[str] = None

	def is_between(self, user_one: str, user_two: str) -> bool:
		return {self.sender_id, self.recipient_id} == {str(user_one), str(user_two)}

	@classmethod
	def from_record(cls, row) -> "Message":
		keys = set(row.keys())

		def _optional(name: str) -> Optional[str]:
			if name not in keys or row[name] is None:
				return None
			return str(row[name])

		return cls(
			id=str(row["id"]),
			sender_id=str(row["sender_id"]),
			recipient_id=str(row["recipient_id"]),
			content=row["content"],
			created_at=row["created_at"],
			item_id=_optional("item_id"),
			roommate_post_id=_optional("roommate_post_id"),
			read_at=row["read_at"] if "read_at" in keys else None,
			sender_name=_optional("sender_name"),
			recipient_name=_optional("recipient_name"),
			item_title=_optional("item_title"),
		)


@dataclass(slots=True)
class UnreadMessageCounts:
	total: int
	by_sender: Dict[str, int]
