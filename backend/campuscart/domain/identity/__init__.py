"""Identity domain exports."""

from .models import UserRecord
from .repo import InMemoryUserDirectory, PostgresUserDirectory, UserDirectory

__all__ = [
	"InMemoryUserDirectory",
	"PostgresUserDirectory",
	"UserDirectory",
	"UserRecord",
]
