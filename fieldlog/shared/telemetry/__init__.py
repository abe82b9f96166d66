"""Shared telemetry: logging setup."""

from fieldlog.shared.telemetry.logging import (
    CredentialRedactionFilter,
    get_logger,
    redact,
    setup_logging,
)

__all__ = [
    "CredentialRedactionFilter",
    "get_logger",
    "redact",
    "setup_logging",
]
