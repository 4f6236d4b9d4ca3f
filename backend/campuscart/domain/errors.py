"""Base class for errors surfaced to clients as ``error`` events."""

from __future__ import annotations


class DomainError(Exception):
	"""Carries a machine-readable reason plus a human-readable message."""

	reason: str = "unknown"
	message: str = "Something went wrong"

	def __init__(self, message: str | None = None, *, reason: str | None = None) -> None:
		super().__init__(message or self.message)
		if message:
			self.message = message
		if reason:
			self.reason = reason
