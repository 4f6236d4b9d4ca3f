"""Admin-only notification fan-out."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from campuscart.api.deps import get_services
from campuscart.container import Services
from campuscart.domain.notifications.schemas import AdminNotificationRequest, NotificationContent
from campuscart.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/notifications", status_code=status.HTTP_202_ACCEPTED)
async def send_admin_notification(
	payload: AdminNotificationRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
	services: Services = Depends(get_services),
) -> dict:
	content = NotificationContent(type=payload.type, title=payload.title, message=payload.message, data=payload.data)
	if payload.audience == "all":
		await services.notifications.deliver_to_all(content)
		return {"audience": "all", "delivered": 0, "broadcast": True}
	university_id = payload.university_id or admin.university_id
	if not university_id:
		raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="university_required")
	delivered = await services.notifications.deliver_to_university(university_id, content)
	return {"audience": "university", "university_id": university_id, "delivered": len(delivered), "broadcast": False}
