"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class RequestNotFoundException(ResourceNotFoundException):
    """No row in the company table carries the request ID."""

    def __init__(self, request_id: str, table: str, action: Optional[str] = None):
        self.table = table
        self.action = action
        super().__init__("Request", request_id, {"table": table, "action": action})
        if action:
            self.message = f"Cannot {action}: request '{request_id}' not found in '{table}'"
            self.args = (self.message,)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class MissingColumnException(ConfigurationException):
    """A request table lacks a column the lifecycle needs to write."""

    def __init__(self, table: str, field: str, accepted: list[str]):
        self.table = table
        self.field = field
        super().__init__(
            f"Table '{table}' has no column for '{field}' "
            f"(accepted headers: {', '.join(accepted)})",
            {"table": table, "field": field}
        )


class TransitionError(DomainException):
    """Raised when a lifecycle action is not allowed in the current state."""

    def __init__(self, request_id: str, action: str, current: str, reason: Optional[str] = None):
        msg = f"Cannot {action} request {request_id} (status={current or 'Open'})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, {"request_id": request_id, "action": action, "status": current})
        self.request_id = request_id
        self.action = action
        self.current_status = current
        self.reason = reason


class LockTimeoutException(ApplicationException):
    """Timed out waiting for the store-wide lifecycle lock. Safe to retry."""

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"{operation} could not acquire the request store lock "
            f"within {timeout_seconds:g}s, please retry",
            {"operation": operation, "retryable": True}
        )


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class BlobStorageException(ExternalServiceException):
    """Exception for attachment storage failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Blob Store", message, details)
