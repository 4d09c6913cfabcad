"""
Error taxonomy shared by the HTTP API and the live channel.

Every error carries the HTTP status it maps to at the request boundary.
Messages of ValidationError, AuthError and NotFoundError are safe to show
to clients; DataAccessError messages are logged but never returned.
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError


class LiveVoteError(Exception):
    """Base class for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        """Message that may be shown to the caller."""
        return self.message


class ValidationError(LiveVoteError):
    """Bad name, choice or code shape."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid request"


class AuthError(LiveVoteError):
    """Bad admin credential, wrong access code or missing privilege."""

    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class NotFoundError(LiveVoteError):
    """Unmatched route."""

    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Not found"


class DataAccessError(LiveVoteError):
    """Store unreachable or a query failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"

    @property
    def client_message(self) -> str:
        return self.public_message


class MigrationError(DataAccessError):
    """A migration file failed and was rolled back."""

    def __init__(self, filename: str, cause: BaseException):
        self.filename = filename
        super().__init__(f"Migration {filename} failed: {cause}")


# Exceptions raised by the driver or the pool when the store misbehaves.
STORE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    SQLAlchemyError,
    OSError,
    asyncio.TimeoutError,
)


@contextmanager
def data_access(operation: str) -> Iterator[None]:
    """Translate store exceptions raised inside the block into DataAccessError."""
    try:
        yield
    except DataAccessError:
        raise
    except STORE_EXCEPTIONS as e:
        raise DataAccessError(f"{operation} failed: {e}") from e
