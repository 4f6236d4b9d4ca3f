"""Domain models for persisted user notifications."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class NotificationType(str, Enum):
	MESSAGE = "message"
	ITEM_SOLD = "item_sold"
	ITEM_SAVED = "item_saved"
	ROOMMATE_MATCH = "roommate_match"
	ROOMMATE_INTEREST = "roommate_interest"
	REVIEW_RECEIVED = "review_received"
	SYSTEM = "system"


@dataclass(slots=True)
class Notification:
	id: str
	user_id: str
	type: str
	title: str
	message: str
	created_at: datetime
	data: Dict[str, Any] = field(default_factory=dict)
	read_at: Optional[datetime] = None

	@property
	def is_read(self) -> bool:
		return self.read_at is not None

	@classmethod
	def from_record(cls, row) -> "Notification":
		data = row["data"]
		if isinstance(data, str):
			data = json.loads(data or "{}")
		return cls(
			id=str(row["id"]),
			user_id=str(row["user_id"]),
			type=row["type"],
			title=row["title"],
			message=row["message"],
			created_at=row["created_at"],
			data=dict(data or {}),
			read_at=row["read_at"],
		)


@dataclass(slots=True)
class NotificationPage:
	items: List[Notification]
	page: int
	limit: int
	total: int

	@property
	def pages(self) -> int:
		return math.ceil(self.total / self.limit) if self.limit else 0

	@property
	def has_more(self) -> bool:
		return self.page * self.limit < self.total
