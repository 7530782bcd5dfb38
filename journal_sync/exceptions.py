"""
Custom exceptions for offline journal storage and sync.

All backends and the remote client raise these exceptions
for consistent error handling across platforms.
"""


class JournalSyncError(Exception):
    """Base exception for all journal sync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StorageIOError(JournalSyncError):
    """Raised when a key-value backend operation fails."""

    def __init__(self, operation: str, key: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if key:
            details["key"] = key
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if key:
            message += f": {key}"
        super().__init__(message, details)
        self.operation = operation
        self.key = key
        self.cause = cause


class RecordDecodeError(JournalSyncError):
    """Raised when a stored value cannot be decoded into a record."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Cannot decode record {key}: {reason}",
            {"key": key, "reason": reason},
        )
        self.key = key
        self.reason = reason


class SyncError(JournalSyncError):
    """Raised when replaying a local mutation against the remote API fails."""

    def __init__(self, message: str, temp_id: str | None = None, cause: Exception | None = None):
        details: dict = {}
        if temp_id:
            details["temp_id"] = temp_id
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.temp_id = temp_id
        self.cause = cause


class RemoteAPIError(JournalSyncError):
    """Raised when the remote entry API answers with an error status."""

    def __init__(self, method: str, path: str, status: int, body: str | None = None):
        details: dict = {"method": method, "path": path, "status": status}
        if body:
            details["body"] = body
        super().__init__(f"{method} {path} failed with status {status}", details)
        self.method = method
        self.path = path
        self.status = status
        self.body = body


class StorageConnectionError(JournalSyncError):
    """Raised when the remote entry API cannot be reached.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Connection failed to {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class AuthenticationError(JournalSyncError):
    """Raised when the remote entry API rejects our credentials."""

    def __init__(self, endpoint: str, reason: str | None = None):
        details = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        super().__init__(f"Authentication failed for {endpoint}", details)
        self.endpoint = endpoint
        self.reason = reason


class ValidationError(JournalSyncError):
    """Raised when data validation fails."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value
