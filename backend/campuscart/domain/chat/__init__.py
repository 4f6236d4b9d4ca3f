"""Chat domain exports."""

from .repo import InMemoryMessageRepository, MessageRepository, PostgresMessageRepository
from .service import MessagingService

__all__ = [
	"InMemoryMessageRepository",
	"MessageRepository",
	"MessagingService",
	"PostgresMessageRepository",
]
