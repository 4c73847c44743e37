"""
Error taxonomy shared by the store, the synchronizers and the API.

Remote failures are classified once, at the store boundary, so callers can
tell an authorization rejection apart from a plain network or query failure.
"""
from typing import Optional
import logging

from feedsync.config import settings

logger = logging.getLogger(__name__)


class FeedSyncError(Exception):
    """Base class for every classified failure"""

    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FeedSyncError):
    """Client-side input rejected before any remote call"""

    status_code = 422
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PermissionDenied(FeedSyncError):
    """The authorization layer refused the operation"""

    status_code = 403
    default_message = "Not permitted"


class AuthenticationRequired(PermissionDenied):
    """The operation needs a signed-in viewer"""

    status_code = 401
    default_message = "Sign in required"


class NotFoundError(FeedSyncError):
    """An expected single row was missing"""

    status_code = 404
    default_message = "Not found"


class TransientNetworkError(FeedSyncError):
    """Any other remote failure"""

    status_code = 503
    default_message = "Remote service unavailable"


def is_permission_denied(message: str, marker: Optional[str] = None) -> bool:
    """Check a raw remote error message for the row-level security marker"""
    marker = marker or settings.PERMISSION_DENIED_MARKER
    return marker.lower() in (message or "").lower()


def is_unique_violation(message: str) -> bool:
    """Unique-constraint failures read the same on SQLite and PostgreSQL"""
    return "unique constraint" in (message or "").lower()


def classify_error(exc: BaseException, marker: Optional[str] = None) -> FeedSyncError:
    """Map a raw exception from the store or transport into the taxonomy"""
    if isinstance(exc, FeedSyncError):
        return exc

    message = str(exc)
    if is_permission_denied(message, marker):
        logger.warning(f"Row-level security rejection: {message}")
        return PermissionDenied(message)

    if is_unique_violation(message):
        logger.info(f"Unique constraint rejected write: {message}")
        return ValidationError("Value already exists")

    logger.error(f"Remote operation failed: {exc.__class__.__name__}: {message}")
    return TransientNetworkError(message or exc.__class__.__name__)
