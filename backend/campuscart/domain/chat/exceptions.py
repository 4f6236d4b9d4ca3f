"""Domain-level exceptions for direct messaging."""

from __future__ import annotations

from campuscart.domain.errors import DomainError


class ChatError(DomainError):
	"""Base class for chat errors."""


class MessageEmpty(ChatError):
	reason = "message_empty"
	message = "Message content is required"


class MessageTooLong(ChatError):
	reason = "message_too_long"
	message = "Message too long (max 2000 characters)"
