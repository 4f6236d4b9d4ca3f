"""Channel naming for personal, university, conversation and roommate rooms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True, frozen=True)
class ConversationKey:
	"""Canonical representation of a 1:1 conversation.

	Participants are sorted so both sides resolve the same channel whoever
	opens the conversation first. A user paired with themself still yields a
	valid key.
	"""

	user_a: str
	user_b: str

	@classmethod
	def from_participants(cls, user_one: str, user_two: str) -> "ConversationKey":
		ordered = tuple(sorted((str(user_one), str(user_two))))
		return cls(user_a=ordered[0], user_b=ordered[1])

	@property
	def channel(self) -> str:
		return f"chat:{self.user_a}:{self.user_b}"

	def participants(self) -> Tuple[str, str]:
		return (self.user_a, self.user_b)


def conversation_channel(self_id: str, other_id: str) -> str:
	return ConversationKey.from_participants(self_id, other_id).channel


def personal_channel(user_id: str) -> str:
	return f"user:{user_id}"


def university_channel(university_id: str) -> str:
	return f"university:{university_id}"


def roommate_channel(user_id: str) -> str:
	return f"roommate:{user_id}"
