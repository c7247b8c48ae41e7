"""
App package - Application configuration and core utilities.
Contains settings, exceptions, and foundational application code.
"""

from app.config import settings
from app.exceptions import (
    FeederSyncError,
    ServiceValidationError,
    InvalidQuantity,
    NotFoundError,
    NotFoundOrUnauthorizedError,
    ConflictError,
    StorageTransactionFailed,
    DeviceUnreachableError,
    DeviceRejectedError,
    DeviceTimeoutError,
)

__all__ = [
    "settings",
    "FeederSyncError",
    "ServiceValidationError",
    "InvalidQuantity",
    "NotFoundError",
    "NotFoundOrUnauthorizedError",
    "ConflictError",
    "StorageTransactionFailed",
    "DeviceUnreachableError",
    "DeviceRejectedError",
    "DeviceTimeoutError",
]
