import os
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("SECRET_KEY", "test-secret")

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from campuscart.container import build_services
from campuscart.domain.chat import InMemoryMessageRepository
from campuscart.domain.identity import InMemoryUserDirectory, UserRecord
from campuscart.domain.notifications import InMemoryNotificationRepository
from campuscart.domain.realtime.channels import personal_channel
from campuscart.domain.roommates import InMemoryRoommatePostRepository
from campuscart.infra import jwt as jwt_helper
from campuscart.main import create_app
from campuscart.settings import settings


@dataclass
class Emitted:
	event: str
	payload: Any
	to: Optional[str]
	skip_sid: Optional[str]


class RecordingGateway:
	"""In-process gateway that tracks channel membership and records publishes."""

	def __init__(self) -> None:
		self.emitted: List[Emitted] = []
		self.members: Dict[str, Set[str]] = {}

	async def join(self, sid: str, channel: str) -> None:
		self.members.setdefault(channel, set()).add(sid)

	async def leave(self, sid: str, channel: str) -> None:
		self.members.get(channel, set()).discard(sid)

	async def emit(self, event: str, payload: Any, *, to: Optional[str] = None, skip_sid: Optional[str] = None) -> None:
		self.emitted.append(Emitted(event=event, payload=payload, to=to, skip_sid=skip_sid))

	async def user_in_channel(self, user_id: str, channel: str) -> bool:
		sids = self.members.get(personal_channel(user_id), set())
		return any(sid in self.members.get(channel, set()) for sid in sids)

	def events(self, name: str) -> List[Emitted]:
		return [item for item in self.emitted if item.event == name]


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-* headers, which only dev mode accepts."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture
def alice() -> UserRecord:
	return UserRecord(id="u-alice", first_name="Alice", last_name="Nguyen", university_id="uni-1", email_verified=True)


@pytest.fixture
def bob() -> UserRecord:
	return UserRecord(id="u-bob", first_name="Bob", last_name="Stone", university_id="uni-1", email_verified=True)


@pytest.fixture
def users(alice, bob) -> InMemoryUserDirectory:
	return InMemoryUserDirectory(
		[
			alice,
			bob,
			UserRecord(id="u-carol", first_name="Carol", university_id="uni-2", email_verified=True),
			UserRecord(id="u-dave", first_name="Dave", university_id="uni-1", status="suspended"),
		]
	)


@pytest.fixture
def gateway() -> RecordingGateway:
	return RecordingGateway()


@pytest.fixture
def message_repo(users) -> InMemoryMessageRepository:
	return InMemoryMessageRepository(users)


@pytest.fixture
def notification_repo() -> InMemoryNotificationRepository:
	return InMemoryNotificationRepository()


@pytest.fixture
def roommate_repo(users) -> InMemoryRoommatePostRepository:
	return InMemoryRoommatePostRepository(users)


@pytest.fixture
def services(gateway, users, message_repo, notification_repo, roommate_repo):
	return build_services(
		gateway,
		users=users,
		messages=message_repo,
		notifications=notification_repo,
		roommate_posts=roommate_repo,
	)


@pytest.fixture
def make_token():
	def _make(user_id: str, **claims: Any) -> str:
		return jwt_helper.encode_access({"sub": user_id, **claims})

	return _make


@pytest.fixture
def expired_token():
	past = datetime.now(timezone.utc) - timedelta(hours=2)
	return jwt_helper.encode_access({"sub": "u-alice", "iat": int(past.timestamp()), "exp": int(past.timestamp()) + 60})


@pytest_asyncio.fixture
async def api_client(services, gateway):
	app = create_app(services=services, gateway=gateway)
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
