"""
Application exceptions for total-economy.

Balance operations never raise for business outcomes such as missing funds;
those are reported through transaction results. The exceptions here cover
the account file, configuration, bad input and the profile lookup service.
Every exception carries a machine-readable code and a ``details`` mapping
that is safe to log.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class AppError(Exception):
    """Root of all total-economy exceptions."""

    default_code: Optional[str] = None

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code or type(self).__name__.upper()
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Log-friendly view of the error."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        suffix = f", Details: {self.details}" if self.details else ""
        return f"{self.message} (Code: {self.error_code}{suffix})"


class ServiceError(AppError):
    """A plugin component was used in a state where it cannot work."""

    default_code = "SERVICE_ERROR"

    def __init__(self, service_name: str, operation: str, message: str,
                 cause: Optional[Exception] = None):
        super().__init__(
            f"[{service_name}] {operation}: {message}",
            details={"service_name": service_name, "operation": operation},
            cause=cause,
        )
        self.service_name = service_name
        self.operation = operation


class DatabaseError(AppError):
    """The account file could not be read or written."""

    default_code = "DATABASE_ERROR"

    def __init__(self, operation: str, message: str, path: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            f"Database {operation}: {message}",
            details={"operation": operation, "path": path},
            cause=cause,
        )
        self.operation = operation
        self.path = path


class ValidationError(AppError):
    """
    An amount, identifier or command argument was rejected.

    The offending value is cut to 100 characters before it is stored, so
    oversized input cannot flood the logs.
    """

    default_code = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, validation_rule: str,
                 message: Optional[str] = None):
        shown = None if value is None else str(value)[:100]
        super().__init__(
            message or f"Validation failed for field '{field}': {validation_rule}",
            details={"field": field, "value": shown, "validation_rule": validation_rule},
        )
        self.field = field
        self.value = shown
        self.validation_rule = validation_rule


class NotFoundError(AppError):
    """No account or currency exists under the requested name."""

    default_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: Any,
                 message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )
        self.resource_type = resource_type
        self.resource_id = str(resource_id)


class ConfigurationError(AppError):
    """A settings value or the account file content is unusable."""

    default_code = "CONFIG_ERROR"

    def __init__(self, config_key: str, message: str,
                 cause: Optional[Exception] = None):
        super().__init__(
            f"Configuration error for '{config_key}': {message}",
            details={"config_key": config_key},
            cause=cause,
        )
        self.config_key = config_key


class ExternalServiceError(AppError):
    """The player profile server failed or returned nothing usable."""

    default_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service_name: str, operation: str,
                 status_code: Optional[int] = None,
                 message: str = "External service error",
                 cause: Optional[Exception] = None):
        super().__init__(
            f"External service '{service_name}' {operation}: {message}",
            details={
                "service_name": service_name,
                "operation": operation,
                "status_code": status_code,
            },
            cause=cause,
        )
        self.service_name = service_name
        self.operation = operation
        self.status_code = status_code


__all__ = [
    'AppError',
    'ServiceError',
    'DatabaseError',
    'ValidationError',
    'NotFoundError',
    'ConfigurationError',
    'ExternalServiceError',
]
