"""Live roommate relays: post updates and match pings."""

from __future__ import annotations

import logging

from campuscart.domain.identity import UserRecord
from campuscart.domain.realtime.channels import roommate_channel
from campuscart.domain.realtime.events import RoommateMatchNotice, RoommatePostUpdated
from campuscart.domain.realtime.gateway import RealtimeGateway

logger = logging.getLogger(__name__)


class RoommateSignals:
	"""Transient pushes only; nothing here is persisted."""

	def __init__(self, gateway: RealtimeGateway) -> None:
		self._gateway = gateway

	async def post_updated(self, sid: str, user: UserRecord, post_id: str, action: str) -> None:
		payload = RoommatePostUpdated(post_id=post_id, user_id=user.id, action=action)
		await self._gateway.emit("roommate_post_updated", payload.dump(), skip_sid=sid)
		logger.info("roommate post update relayed", extra={"user_id": user.id, "post_id": post_id, "action": action})

	async def match_found(self, sender: UserRecord, to_user_id: str, post_id: str) -> None:
		notice = RoommateMatchNotice(from_user_id=sender.id, from_user_name=sender.display_name, post_id=post_id)
		await self._gateway.emit("roommate_match_notification", notice.dump(), to=roommate_channel(to_user_id))
