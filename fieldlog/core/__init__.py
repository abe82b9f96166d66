"""Core: config, constants, and backend resolution.

Single place for settings and shared constants.
"""

from fieldlog.core.config import (
    BackendConfig,
    ConfigState,
    ResolvedBackends,
    Settings,
    get_settings,
    resolve_backends,
)

__all__ = [
    "BackendConfig",
    "ConfigState",
    "ResolvedBackends",
    "Settings",
    "get_settings",
    "resolve_backends",
]
