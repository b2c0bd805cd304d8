"""
Error taxonomy for the sync API.

Every error surfaced to a caller carries a machine-readable `code` and an
HTTP status; the handler registered in `main.py` renders them as
`{"success": false, "error": ..., "code": ...}`.
"""

from typing import List, Optional


class SyncError(Exception):
    code = "SERVER_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(SyncError):
    """Missing, unknown or inactive credential."""
    code = "AUTH_FAILED"
    status_code = 401
    default_message = "Invalid API key"

    MISSING_KEY = "missing_key"
    INVALID_OR_INACTIVE = "invalid_or_inactive"

    def __init__(self, reason: str = INVALID_OR_INACTIVE, message: Optional[str] = None):
        self.reason = reason
        if message is None and reason == self.MISSING_KEY:
            message = "Missing API key"
        super().__init__(message)


class PayloadValidationError(SyncError):
    code = "INVALID_PAYLOAD"
    status_code = 400
    default_message = "Invalid payload"

    def __init__(self, message: Optional[str] = None, missing_fields: Optional[List[str]] = None):
        self.missing_fields = list(missing_fields or [])
        if message is None and self.missing_fields:
            message = f"Missing required fields: {', '.join(self.missing_fields)}"
        super().__init__(message)


class ConflictError(SyncError):
    code = "DUPLICATE_BOOKING"
    status_code = 409
    default_message = "Booking already exists. Use booking.updated event to update."

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        if code:
            self.code = code
        super().__init__(message)


class NotFoundError(SyncError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class ForbiddenError(SyncError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Forbidden"


class StorageError(SyncError):
    """Unexpected persistence failure."""
    code = "SERVER_ERROR"
    status_code = 500


class DeliveryError(Exception):
    """
    Outbound webhook failure. Raised only inside the webhook sender and turned
    into a failed DeliveryResult before it can reach a caller.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class WebhookNotConfiguredError(SyncError):
    code = "WEBHOOK_NOT_CONFIGURED"
    status_code = 400
    default_message = "Website has no webhook URL configured"
