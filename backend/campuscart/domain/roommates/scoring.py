"""Weighted compatibility score between two roommate posts.

Budget, housing type and location are all-or-nothing. The 1-5 lifestyle
scales earn partial credit as they get closer; the boolean house rules only
count when they agree.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Tuple

from .models import RoommateProfile

BUDGET_WEIGHT = 25
HOUSING_WEIGHT = 20
LOCATION_WEIGHT = 15

LIFESTYLE_WEIGHTS: Tuple[Tuple[str, int], ...] = (
	("cleanliness_level", 10),
	("noise_tolerance", 8),
	("social_level", 7),
	("smoking_allowed", 8),
	("pets_allowed", 7),
)

SCALE_SPAN = 5

TOTAL_WEIGHT = BUDGET_WEIGHT + HOUSING_WEIGHT + LOCATION_WEIGHT + sum(weight for _, weight in LIFESTYLE_WEIGHTS)


def _is_number(value: Any) -> bool:
	return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def budgets_overlap(a: RoommateProfile, b: RoommateProfile) -> bool:
	if not all(_is_number(value) for value in (a.budget_min, a.budget_max, b.budget_min, b.budget_max)):
		return False
	return a.budget_max >= b.budget_min and a.budget_min <= b.budget_max


def _lifestyle_credit(left: Any, right: Any, weight: int) -> float:
	if _is_number(left) and _is_number(right):
		difference = abs(float(left) - float(right))
		return max(0.0, (SCALE_SPAN - difference) / SCALE_SPAN) * weight
	return float(weight) if left == right else 0.0


def compatibility_score(a: RoommateProfile, b: RoommateProfile) -> int:
	"""Return an integer in [0, 100]; pure and deterministic."""
	achieved = 0.0
	if budgets_overlap(a, b):
		achieved += BUDGET_WEIGHT
	if a.housing_type == b.housing_type:
		achieved += HOUSING_WEIGHT
	if a.preferred_location == b.preferred_location:
		achieved += LOCATION_WEIGHT
	for attribute, weight in LIFESTYLE_WEIGHTS:
		achieved += _lifestyle_credit(getattr(a, attribute), getattr(b, attribute), weight)
	# half-up rounding
	return int(math.floor(100 * achieved / TOTAL_WEIGHT + 0.5))
