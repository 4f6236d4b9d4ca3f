"""Shared FastAPI dependencies."""

from __future__ import annotations

import re

from fastapi import HTTPException, Request, status

from campuscart.container import Services

_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,64}$")


def get_services(request: Request) -> Services:
	return request.app.state.services


def ensure_id(value: str) -> str:
	if not _ID_PATTERN.match(value or ""):
		raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="invalid_id")
	return value
