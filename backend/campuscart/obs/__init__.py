"""Observability package bootstrap."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from campuscart.obs import logging as obs_logging
from campuscart.obs import middleware
from campuscart.settings import settings

_logging_configured = False


def init(app: FastAPI) -> None:
	global _logging_configured
	if not settings.obs_enabled:
		return
	if not _logging_configured:
		obs_logging.configure_logging()
		_logging_configured = True
	middleware.install(app)

	@app.get("/metrics", include_in_schema=False)
	async def _metrics() -> PlainTextResponse:
		return PlainTextResponse(generate_latest().decode(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["init"]
