"""REST mirror of the real-time notification operations for polling clients."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from campuscart.api.deps import ensure_id, get_services
from campuscart.container import Services
from campuscart.domain.notifications.dispatcher import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from campuscart.domain.notifications.exceptions import NotificationError, NotificationNotFound
from campuscart.domain.notifications.schemas import NotificationPageResponse, NotificationPayload
from campuscart.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _map_error(exc: NotificationError) -> HTTPException:
	if isinstance(exc, NotificationNotFound):
		return HTTPException(status.HTTP_404_NOT_FOUND, detail=exc.reason)
	return HTTPException(status.HTTP_400_BAD_REQUEST, detail=exc.reason)


@router.get("", response_model=NotificationPageResponse, response_model_by_alias=False)
async def list_notifications(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
	unread: bool = Query(default=False),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> NotificationPageResponse:
	result = await services.notifications.history(auth_user.id, page=page, limit=limit, unread_only=unread)
	return NotificationPageResponse.from_model(result)


@router.get("/unread-count")
async def unread_count(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> dict:
	return {"count": await services.notifications.unread_count(auth_user.id)}


@router.patch("/mark-all-read")
async def mark_all_read(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> dict:
	return {"updated_count": await services.notifications.mark_all_read(auth_user.id)}


@router.patch("/{notification_id}/read", response_model=NotificationPayload, response_model_by_alias=False)
async def mark_read(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> NotificationPayload:
	try:
		notification = await services.notifications.mark_read(auth_user.id, ensure_id(notification_id))
	except NotificationError as exc:
		raise _map_error(exc) from None
	return NotificationPayload.from_model(notification)


@router.delete("/clear-read")
async def clear_read(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> dict:
	return {"deleted_count": await services.notifications.clear_read(auth_user.id)}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> Response:
	try:
		await services.notifications.delete(auth_user.id, ensure_id(notification_id))
	except NotificationError as exc:
		raise _map_error(exc) from None
	return Response(status_code=status.HTTP_204_NO_CONTENT)
