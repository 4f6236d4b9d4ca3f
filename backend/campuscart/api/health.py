"""Liveness and readiness probes."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from campuscart.obs import health

router = APIRouter(tags=["ops"])


@router.get("/health")
async def liveness() -> dict:
	return health.liveness()


@router.get("/health/ready")
async def readiness() -> JSONResponse:
	payload = await health.readiness()
	return JSONResponse(status_code=200 if payload["ok"] else 503, content=payload)
