"""Persist-then-push notification delivery.

Every notification is written first and then published to the owner's
personal channel. Users without a live connection simply miss the push and
pick the row up from their history later.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from campuscart.domain.identity import UserDirectory, UserRecord
from campuscart.domain.realtime.channels import personal_channel
from campuscart.domain.realtime.gateway import RealtimeGateway
from campuscart.obs import metrics as obs_metrics

from .exceptions import NotificationNotFound
from .models import Notification, NotificationPage, NotificationType
from .repo import NotificationRepository
from .schemas import BroadcastPayload, NotificationContent, NotificationPayload

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
REVIEW_PREVIEW_LENGTH = 200


class NotificationDispatcher:
	def __init__(self, repository: NotificationRepository, gateway: RealtimeGateway, users: UserDirectory) -> None:
		self._repo = repository
		self._gateway = gateway
		self._users = users

	async def deliver(self, user_id: str, content: NotificationContent) -> Notification:
		kind = NotificationType(content.type).value
		notification = await self._repo.create(
			user_id=str(user_id),
			type=kind,
			title=content.title,
			message=content.message,
			data=content.data,
		)
		obs_metrics.notification_persisted(kind)
		try:
			await self._gateway.emit(
				"notification",
				NotificationPayload.from_model(notification).dump(),
				to=personal_channel(user_id),
			)
		except Exception:
			# The stored row is what the client falls back to.
			logger.warning(
				"notification push failed",
				exc_info=True,
				extra={"user_id": str(user_id), "notification_id": notification.id},
			)
		else:
			obs_metrics.notification_pushed(kind)
		logger.info("notification delivered", extra={"user_id": str(user_id), "type": kind})
		return notification

	async def deliver_to_many(self, user_ids: Iterable[str], content: NotificationContent) -> List[Notification]:
		delivered: List[Notification] = []
		for user_id in user_ids:
			try:
				delivered.append(await self.deliver(user_id, content))
			except Exception:
				obs_metrics.notification_failed(NotificationType(content.type).value)
				logger.warning("notification delivery failed", exc_info=True, extra={"user_id": str(user_id)})
		return delivered

	async def deliver_to_all(self, content: NotificationContent) -> None:
		"""Push to every connected client; nothing is stored."""
		payload = BroadcastPayload(
			type=NotificationType(content.type).value,
			title=content.title,
			message=content.message,
			data=content.data,
		)
		await self._gateway.emit("broadcast_notification", payload.dump())
		obs_metrics.notification_broadcast()
		logger.info("broadcast notification sent", extra={"type": payload.type})

	async def deliver_to_university(self, university_id: str, content: NotificationContent) -> List[Notification]:
		user_ids = await self._users.list_active_user_ids(str(university_id))
		if not user_ids:
			return []
		return await self.deliver_to_many(user_ids, content)

	async def history(
		self,
		user_id: str,
		*,
		page: int = 1,
		limit: int = DEFAULT_PAGE_SIZE,
		unread_only: bool = False,
	) -> NotificationPage:
		page = max(1, page)
		limit = min(max(1, limit), MAX_PAGE_SIZE)
		items, total = await self._repo.list_for_user(
			user_id,
			limit=limit,
			offset=(page - 1) * limit,
			unread_only=unread_only,
		)
		return NotificationPage(items=items, page=page, limit=limit, total=total)

	async def unread_count(self, user_id: str) -> int:
		return await self._repo.count_unread(user_id)

	async def mark_read(self, user_id: str, notification_id: str) -> Notification:
		notification = await self._repo.mark_read(user_id, notification_id, datetime.now(timezone.utc))
		if notification is None:
			raise NotificationNotFound()
		return notification

	async def mark_all_read(self, user_id: str) -> int:
		return await self._repo.mark_all_read(user_id, datetime.now(timezone.utc))

	async def delete(self, user_id: str, notification_id: str) -> None:
		if not await self._repo.delete(user_id, notification_id):
			raise NotificationNotFound()

	async def clear_read(self, user_id: str) -> int:
		return await self._repo.delete_read(user_id)

	# Typed producers used by marketplace flows.

	async def _lookup(self, user_id: str) -> Optional[UserRecord]:
		user = await self._users.get_user(str(user_id))
		if user is None:
			logger.info("notification skipped for unknown related user", extra={"related_user_id": str(user_id)})
		return user

	async def item_sold(
		self,
		seller_id: str,
		buyer_id: str,
		*,
		item_id: str,
		item_title: str,
		price: Any = None,
	) -> Optional[Notification]:
		buyer = await self._lookup(buyer_id)
		if buyer is None:
			return None
		return await self.deliver(
			seller_id,
			NotificationContent(
				type=NotificationType.ITEM_SOLD,
				title="Item Sold!",
				message=f'Your item "{item_title}" has been sold to {buyer.full_name}',
				data={
					"itemId": item_id,
					"itemTitle": item_title,
					"buyerId": buyer.id,
					"buyerName": buyer.full_name,
					"price": price,
				},
			),
		)

	async def item_saved(self, seller_id: str, saver_id: str, *, item_id: str, item_title: str) -> Optional[Notification]:
		saver = await self._lookup(saver_id)
		if saver is None:
			return None
		return await self.deliver(
			seller_id,
			NotificationContent(
				type=NotificationType.ITEM_SAVED,
				title="Someone saved your item!",
				message=f'{saver.full_name} saved your item "{item_title}"',
				data={"itemId": item_id, "itemTitle": item_title, "saverId": saver.id, "saverName": saver.full_name},
			),
		)

	async def roommate_match(
		self,
		user_id: str,
		match_id: str,
		*,
		compatibility_score: int,
		post_title: Optional[str] = None,
	) -> Optional[Notification]:
		match = await self._lookup(match_id)
		if match is None:
			return None
		return await self.deliver(
			user_id,
			NotificationContent(
				type=NotificationType.ROOMMATE_MATCH,
				title="New Roommate Match!",
				message=f"You have a {compatibility_score}% compatibility match with {match.full_name}",
				data={
					"matchId": match.id,
					"matchName": match.full_name,
					"compatibilityScore": compatibility_score,
					"postTitle": post_title,
				},
			),
		)

	async def review_received(
		self,
		reviewee_id: str,
		reviewer_id: str,
		*,
		review_id: str,
		rating: int,
		comment: Optional[str] = None,
	) -> Optional[Notification]:
		reviewer = await self._lookup(reviewer_id)
		if reviewer is None:
			return None
		preview = comment[:REVIEW_PREVIEW_LENGTH] if comment else "No comment"
		return await self.deliver(
			reviewee_id,
			NotificationContent(
				type=NotificationType.REVIEW_RECEIVED,
				title="New Review Received",
				message=f'{reviewer.full_name} left you a {rating}-star review: "{preview}"',
				data={
					"reviewId": review_id,
					"reviewerId": reviewer.id,
					"reviewerName": reviewer.full_name,
					"rating": rating,
					"comment": comment,
				},
			),
		)

	async def roommate_interest(
		self,
		owner_id: str,
		interested: UserRecord,
		*,
		post_id: str,
		message: Optional[str] = None,
	) -> Notification:
		return await self.deliver(
			owner_id,
			NotificationContent(
				type=NotificationType.ROOMMATE_INTEREST,
				title="Roommate interest",
				message=message or "Someone is interested in your roommate post!",
				data={"fromUserId": interested.id, "fromUserName": interested.full_name, "postId": post_id},
			),
		)

	async def system(
		self,
		user_id: str,
		title: str,
		message: str,
		data: Optional[Dict[str, Any]] = None,
	) -> Notification:
		return await self.deliver(
			user_id,
			NotificationContent(type=NotificationType.SYSTEM, title=title, message=message, data=data or {}),
		)
