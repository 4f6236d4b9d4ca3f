"""Roommate match listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from campuscart.api.deps import get_services
from campuscart.container import Services
from campuscart.domain.roommates.schemas import RoommateMatchList, RoommateMatchResponse
from campuscart.domain.roommates.service import DEFAULT_MATCH_LIMIT
from campuscart.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/roommates", tags=["roommates"])


@router.get("/matches", response_model=RoommateMatchList)
async def list_matches(
	limit: int = Query(default=DEFAULT_MATCH_LIMIT, ge=1, le=100),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: Services = Depends(get_services),
) -> RoommateMatchList:
	matches = await services.roommates.find_matches(auth_user.id, limit=limit)
	return RoommateMatchList(matches=[RoommateMatchResponse.from_model(match) for match in matches], count=len(matches))
