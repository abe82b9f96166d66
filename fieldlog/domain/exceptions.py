"""Domain exceptions for fieldlog.

Only conditions the caller must act on are raised. Missing configuration
and transient backend failures never surface as exceptions: drivers
return tagged results and the storage adapter turns them into fallback
decisions.
"""

from typing import Any


class FieldlogException(Exception):
    """Base of every error fieldlog raises to its callers.

    error_code is stable and machine-readable (defaults to the class
    name); details holds structured context such as the payload size
    or the backend name.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = dict(details or {})


class ValidationException(FieldlogException):
    """Raised when record input fails validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ConfigurationException(FieldlogException):
    """Raised when a configured backend cannot be constructed (e.g. unreadable key file)."""

    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(
            f"Invalid configuration for {backend}: {reason}",
            "CONFIGURATION_ERROR",
            {"backend": backend, "reason": reason},
        )


class PayloadTooLargeException(FieldlogException):
    """Image is still over the inline size budget after every compression pass."""

    def __init__(self, size: int, budget: int) -> None:
        super().__init__(
            f"Image too large ({round(size / 1024)} KB after compression, "
            f"limit {round(budget / 1024)} KB). Please choose a smaller image.",
            "PAYLOAD_TOO_LARGE",
            {"size": size, "budget": budget},
        )


class StorageFatalException(FieldlogException):
    """Both the primary backend and the local fallback failed for one operation."""

    def __init__(
        self,
        operation: str,
        local_error: str,
        primary_error: str | None = None,
    ) -> None:
        super().__init__(
            f"Storage operation '{operation}' failed on every backend",
            "STORAGE_FATAL",
            {
                "operation": operation,
                "primary_error": primary_error,
                "local_error": local_error,
            },
        )


class CleanupNotConfirmedException(FieldlogException):
    """Reference cleanup was invoked without explicit confirmation."""

    def __init__(self, pending: int) -> None:
        super().__init__(
            f"Cleanup of {pending} photo reference(s) requires confirmed=True",
            "CLEANUP_NOT_CONFIRMED",
            {"pending": pending},
        )
