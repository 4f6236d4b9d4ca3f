"""Roommate matching exports."""

from .models import RoommateMatch, RoommateProfile
from .repo import InMemoryRoommatePostRepository, PostgresRoommatePostRepository, RoommatePostRepository
from .scoring import compatibility_score
from .service import RoommateMatcher
from .signals import RoommateSignals

__all__ = [
	"InMemoryRoommatePostRepository",
	"PostgresRoommatePostRepository",
	"RoommateMatch",
	"RoommateMatcher",
	"RoommatePostRepository",
	"RoommateProfile",
	"RoommateSignals",
	"compatibility_score",
]
