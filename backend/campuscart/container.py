"""Wires repositories, the realtime gateway and domain services together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from campuscart.domain.chat import MessageRepository, MessagingService, PostgresMessageRepository
from campuscart.domain.identity import PostgresUserDirectory, UserDirectory
from campuscart.domain.notifications import (
	NotificationDispatcher,
	NotificationRepository,
	PostgresNotificationRepository,
)
from campuscart.domain.realtime.auth import ConnectionAuthenticator
from campuscart.domain.realtime.gateway import RealtimeGateway
from campuscart.domain.roommates import (
	PostgresRoommatePostRepository,
	RoommateMatcher,
	RoommatePostRepository,
	RoommateSignals,
)


@dataclass(slots=True)
class Services:
	users: UserDirectory
	authenticator: ConnectionAuthenticator
	chat: MessagingService
	notifications: NotificationDispatcher
	roommates: RoommateMatcher
	roommate_signals: RoommateSignals


def build_services(
	gateway: RealtimeGateway,
	*,
	users: Optional[UserDirectory] = None,
	messages: Optional[MessageRepository] = None,
	notifications: Optional[NotificationRepository] = None,
	roommate_posts: Optional[RoommatePostRepository] = None,
) -> Services:
	"""Postgres-backed by default; tests pass in-memory repositories."""
	users = users or PostgresUserDirectory()
	return Services(
		users=users,
		authenticator=ConnectionAuthenticator(users),
		chat=MessagingService(messages or PostgresMessageRepository(), gateway),
		notifications=NotificationDispatcher(notifications or PostgresNotificationRepository(), gateway, users),
		roommates=RoommateMatcher(roommate_posts or PostgresRoommatePostRepository()),
		roommate_signals=RoommateSignals(gateway),
	)
