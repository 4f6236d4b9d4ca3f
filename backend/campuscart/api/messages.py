"""Polling endpoints for direct messages."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from campuscart.api.deps import get_services
from campuscart.container import Services
from campuscart.domain.chat.schemas import UnreadMessagesResponse
from campuscart.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/messages", tags=["chat"])


@router.get("/unread-count", response_model=UnreadMessagesResponse, response_model_by_alias=False)
async def unread_messages(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> UnreadMessagesResponse:
	counts = await services.chat.unread_counts(auth_user.id)
	return UnreadMessagesResponse.from_model(counts)
