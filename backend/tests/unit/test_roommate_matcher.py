from datetime import datetime, timedelta, timezone

import pytest

from campuscart.domain.identity import UserRecord
from campuscart.domain.roommates import RoommateMatcher, RoommateProfile


def _post(post_id: str, user_id: str, **overrides) -> RoommateProfile:
	now = datetime.now(timezone.utc)
	fields = {
		"id": post_id,
		"user_id": user_id,
		"budget_min": 500,
		"budget_max": 800,
		"housing_type": "apartment",
		"preferred_location": "near_campus",
		"cleanliness_level": 4,
		"noise_tolerance": 3,
		"social_level": 3,
		"smoking_allowed": False,
		"pets_allowed": False,
		"expires_at": now + timedelta(days=30),
	}
	fields.update(overrides)
	return RoommateProfile(**fields)


@pytest.fixture
def matcher(roommate_repo) -> RoommateMatcher:
	return RoommateMatcher(roommate_repo)


@pytest.mark.asyncio
async def test_no_open_post_means_no_matches(matcher, roommate_repo):
	roommate_repo.add(_post("p-bob", "u-bob"))
	assert await matcher.find_matches("u-alice") == []


@pytest.mark.asyncio
async def test_matches_ranked_and_filtered(matcher, roommate_repo, users):
	users.add(UserRecord(id="u-erin", first_name="Erin", email_verified=True))
	users.add(UserRecord(id="u-finn", first_name="Finn", email_verified=True))
	roommate_repo.add(_post("p-alice", "u-alice"))
	roommate_repo.add(_post("p-bob", "u-bob", budget_min=1500, budget_max=2000))
	roommate_repo.add(_post("p-erin", "u-erin"))
	# everything differs: well under the minimum score
	roommate_repo.add(
		_post(
			"p-finn",
			"u-finn",
			budget_min=2000,
			budget_max=3000,
			housing_type="house",
			preferred_location="downtown",
			cleanliness_level=1,
			noise_tolerance=5,
			social_level=5,
			smoking_allowed=True,
			pets_allowed=True,
		)
	)

	matches = await matcher.find_matches("u-alice")

	assert [(m.profile.id, m.compatibility_score) for m in matches] == [("p-erin", 100), ("p-bob", 75)]


@pytest.mark.asyncio
async def test_candidates_exclude_inactive_unverified_expired_and_closed(matcher, roommate_repo, users):
	past = datetime.now(timezone.utc) - timedelta(days=1)
	users.add(UserRecord(id="u-gwen", first_name="Gwen", email_verified=False))
	users.add(UserRecord(id="u-hank", first_name="Hank", email_verified=True))
	users.add(UserRecord(id="u-ivy", first_name="Ivy", email_verified=True))
	roommate_repo.add(_post("p-alice", "u-alice"))
	roommate_repo.add(_post("p-dave", "u-dave"))
	roommate_repo.add(_post("p-gwen", "u-gwen"))
	roommate_repo.add(_post("p-hank", "u-hank", expires_at=past))
	roommate_repo.add(_post("p-ivy", "u-ivy", status="matched"))
	roommate_repo.add(_post("p-alice-old", "u-alice"))

	assert await matcher.find_matches("u-alice") == []


@pytest.mark.asyncio
async def test_limit_truncates_ranked_list(matcher, roommate_repo, users):
	roommate_repo.add(_post("p-alice", "u-alice"))
	for index in range(5):
		user_id = f"u-extra-{index}"
		users.add(UserRecord(id=user_id, first_name="Extra", email_verified=True))
		roommate_repo.add(_post(f"p-{index}", user_id, cleanliness_level=4 - (index % 3)))

	matches = await matcher.find_matches("u-alice", limit=2)

	assert len(matches) == 2
	assert all(m.compatibility_score == 100 for m in matches)


@pytest.mark.asyncio
async def test_expired_own_post_still_drives_matching(matcher, roommate_repo):
	past = datetime.now(timezone.utc) - timedelta(days=1)
	roommate_repo.add(_post("p-alice", "u-alice", expires_at=past))
	roommate_repo.add(_post("p-bob", "u-bob"))

	matches = await matcher.find_matches("u-alice")

	assert [m.profile.id for m in matches] == ["p-bob"]


@pytest.mark.asyncio
async def test_closed_own_post_yields_no_matches(matcher, roommate_repo):
	roommate_repo.add(_post("p-alice", "u-alice", status="matched"))
	roommate_repo.add(_post("p-bob", "u-bob"))

	assert await matcher.find_matches("u-alice") == []
