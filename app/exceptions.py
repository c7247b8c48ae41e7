from typing import Any, Mapping, Optional


class FeederSyncError(Exception):
    """Base class for errors surfaced to the web layer.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, validation info)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(FeederSyncError):
    """Raised when input data is invalid or a precondition for a service call is not met.

    Rejected before storage or the device is touched. http_status is 400.
    """

    http_status = 400
    default_message = "Invalid input"


class InvalidQuantity(ServiceValidationError):
    """Raised when a portion amount is not a non-negative number."""

    default_message = "Invalid quantity"


class NotFoundError(FeederSyncError):
    """Raised when a requested resource was not found. http_status is 404."""

    http_status = 404
    default_message = "Not found"


class NotFoundOrUnauthorizedError(NotFoundError):
    """Raised when a feeder is absent or not owned by the caller.

    Both cases share one message so callers cannot probe for feeders they do
    not own.
    """

    default_message = "Feeder not found"


class ConflictError(FeederSyncError):
    """Raised when a state transition lost against a concurrent one. http_status is 409."""

    http_status = 409
    default_message = "Conflict"


class StorageTransactionFailed(FeederSyncError):
    """Raised when a write to the store could not be committed.

    Never swallowed: the triggering request fails with http_status 500.
    """

    http_status = 500
    default_message = "Storage transaction failed"


class DeviceUnreachableError(FeederSyncError):
    """Raised by a transport when the feeder endpoint cannot be contacted."""

    http_status = 502
    default_message = "Feeder unreachable"


class DeviceRejectedError(FeederSyncError):
    """Raised when the feeder explicitly refused a command."""

    http_status = 409
    default_message = "Feeder rejected the command"


class DeviceTimeoutError(FeederSyncError):
    """Raised when no acknowledgement arrived in time."""

    http_status = 504
    default_message = "Feeder did not answer in time"
