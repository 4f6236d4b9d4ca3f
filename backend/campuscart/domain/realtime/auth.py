"""Handshake authentication for real-time connections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set
from urllib.parse import parse_qs

import jwt
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from campuscart.domain.identity import UserDirectory, UserRecord
from campuscart.infra import jwt as jwt_helper

logger = logging.getLogger(__name__)


class RejectReason(str, Enum):
	TOKEN_MISSING = "TOKEN_MISSING"
	TOKEN_EXPIRED = "TOKEN_EXPIRED"
	TOKEN_INVALID = "TOKEN_INVALID"
	USER_NOT_FOUND = "USER_NOT_FOUND"
	ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"


_REJECT_MESSAGES = {
	RejectReason.TOKEN_MISSING: "Authentication token required",
	RejectReason.TOKEN_EXPIRED: "Authentication token expired",
	RejectReason.TOKEN_INVALID: "Invalid authentication token",
	RejectReason.USER_NOT_FOUND: "User not found",
	RejectReason.ACCOUNT_INACTIVE: "Account is not active",
}


class ConnectionRejected(SocketConnectionRefused):
	"""Refuses the handshake; the client sees ``{"message", "data": {"code"}}``."""

	def __init__(self, reason: RejectReason) -> None:
		self.reason = reason
		self.message = _REJECT_MESSAGES[reason]
		super().__init__(self.message, {"code": reason.value})


@dataclass(slots=True)
class Connection:
	"""One live client session; never persisted."""

	sid: str
	user: UserRecord
	channels: Set[str] = field(default_factory=set)

	@property
	def user_id(self) -> str:
		return self.user.id


def _header(environ: dict, name: str) -> Optional[str]:
	wsgi_key = "HTTP_" + name.upper().replace("-", "_")
	if environ.get(wsgi_key):
		return str(environ[wsgi_key])
	scope = environ.get("asgi.scope") or {}
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def _query_param(environ: dict, name: str) -> Optional[str]:
	raw = environ.get("QUERY_STRING")
	if raw is None:
		scope = environ.get("asgi.scope") or {}
		query_bytes = scope.get("query_string") or b""
		raw = query_bytes.decode() if isinstance(query_bytes, bytes) else str(query_bytes)
	values = parse_qs(raw).get(name)
	return values[0] if values else None


def extract_token(environ: dict, auth: Optional[dict] = None) -> Optional[str]:
	"""Find the bearer credential in the auth payload, query string or header."""
	if isinstance(auth, dict) and auth.get("token"):
		return str(auth["token"]).strip()
	token = _query_param(environ, "token")
	if token:
		return token.strip()
	header = _header(environ, "authorization")
	if header and header.lower().startswith("bearer "):
		return header.split(" ", 1)[1].strip() or None
	return None


class ConnectionAuthenticator:
	def __init__(self, users: UserDirectory) -> None:
		self._users = users

	async def authenticate(self, environ: dict, auth: Optional[dict] = None) -> UserRecord:
		token = extract_token(environ, auth)
		if not token:
			raise ConnectionRejected(RejectReason.TOKEN_MISSING)
		try:
			claims = jwt_helper.decode_access(token)
		except jwt.ExpiredSignatureError:
			raise ConnectionRejected(RejectReason.TOKEN_EXPIRED) from None
		except jwt.InvalidTokenError:
			raise ConnectionRejected(RejectReason.TOKEN_INVALID) from None

		user = await self._users.get_user(str(claims["sub"]))
		if user is None:
			raise ConnectionRejected(RejectReason.USER_NOT_FOUND)
		if not user.is_active:
			logger.info("socket auth refused inactive account", extra={"user_id": user.id, "status": user.status})
			raise ConnectionRejected(RejectReason.ACCOUNT_INACTIVE)
		return user
