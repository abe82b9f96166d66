"""Application configuration (settings and backend resolution).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Raw settings are turned into typed BackendConfig
values once (resolve_backends) and handed to the storage adapter, so
backend availability is never re-derived from environment lookups on
every call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldlog.core.constants import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_OPERATION_TIMEOUT_SECONDS,
    DEFAULT_PHOTO_SIZE_BUDGET_BYTES,
    PLACEHOLDER_SENTINELS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Every backend setting is optional. A backend whose required values
    are missing or still hold placeholder text (e.g. "your_api_key")
    resolves to Unconfigured/Invalid and the adapter silently falls back.
    """

    # App
    app_name: str = "fieldlog"
    app_version: str = "1.0.0"
    debug: bool = False

    # Firebase: Firestore (records) + Firebase Storage (photos)
    firebase_api_key: SecretStr | None = None
    firebase_project_id: str | None = None
    firebase_storage_bucket: str | None = None
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None  # Path to JSON file

    # Object store for photos: "firebase" or "s3"
    object_store_backend: str = "firebase"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None

    # WebDAV
    webdav_url: str | None = None
    webdav_username: str | None = None
    webdav_password: SecretStr | None = None
    webdav_base_path: str | None = None

    # NAS: "http", "filestation" or "webdav"
    nas_url: str | None = None
    nas_upload_method: str = "webdav"
    nas_http_endpoint: str = "/upload"
    nas_http_token: SecretStr | None = None
    nas_api_user: str | None = None
    nas_api_pass: SecretStr | None = None
    nas_target_folder: str = "/photos"
    nas_webdav_path: str = "/webdav/photos"
    nas_webdav_user: str | None = None
    nas_webdav_pass: SecretStr | None = None

    # Local fallback
    local_storage_root: str = ".fieldlog"

    # Limits / timeouts
    photo_size_budget_bytes: int = DEFAULT_PHOTO_SIZE_BUDGET_BYTES
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    operation_timeout_seconds: float = DEFAULT_OPERATION_TIMEOUT_SECONDS

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("object_store_backend", "nas_upload_method", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.lower().strip() if isinstance(v, str) else v

    @field_validator(
        "photo_size_budget_bytes",
        "connect_timeout_seconds",
        "operation_timeout_seconds",
    )
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    In tests, call get_settings.cache_clear() before overriding env vars
    so the next get_settings() uses the new values.
    """
    return Settings()


# ---------------------------------------------------------------------------
# Typed backend configuration
# ---------------------------------------------------------------------------


class ConfigState(str, Enum):
    """Resolution state of one backend's configuration."""

    UNCONFIGURED = "unconfigured"
    INVALID = "invalid"
    READY = "ready"


@dataclass(frozen=True)
class BackendConfig:
    """Tagged configuration result: Unconfigured, Invalid(reason) or Ready(credentials).

    Use the unconfigured()/invalid()/ready() constructors; credentials is
    only populated when state is READY.
    """

    name: str
    state: ConfigState
    reason: str | None = None
    credentials: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def unconfigured(cls, name: str) -> BackendConfig:
        return cls(name, ConfigState.UNCONFIGURED)

    @classmethod
    def invalid(cls, name: str, reason: str) -> BackendConfig:
        return cls(name, ConfigState.INVALID, reason=reason)

    @classmethod
    def ready(cls, name: str, **credentials: Any) -> BackendConfig:
        return cls(name, ConfigState.READY, credentials=credentials)

    @property
    def is_ready(self) -> bool:
        return self.state is ConfigState.READY


@dataclass(frozen=True)
class ResolvedBackends:
    """All backend configurations resolved from one Settings instance."""

    document_store: BackendConfig
    object_store: BackendConfig
    webdav: BackendConfig
    nas: BackendConfig

    def photo_backends(self) -> list[BackendConfig]:
        """Remote photo backends in upload preference order."""
        return [self.object_store, self.webdav, self.nas]


def _secret(value: SecretStr | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return value


def is_placeholder(value: str | None) -> bool:
    """Return True if value is empty or still looks like template text ("your_...")."""
    if value is None:
        return True
    stripped = str(value).strip()
    if not stripped:
        return True
    lowered = stripped.lower()
    return any(sentinel in lowered for sentinel in PLACEHOLDER_SENTINELS)


def _check_values(name: str, values: dict[str, str | None]) -> BackendConfig | None:
    """Return Unconfigured/Invalid when any gating value is missing or a placeholder."""
    present = {k: v for k, v in values.items() if v is not None and str(v).strip()}
    if not present:
        return BackendConfig.unconfigured(name)
    missing = [k for k in values if k not in present]
    if missing:
        return BackendConfig.invalid(name, f"missing {', '.join(sorted(missing))}")
    placeholders = [k for k, v in present.items() if is_placeholder(v)]
    if placeholders:
        return BackendConfig.invalid(
            name, f"placeholder value in {', '.join(sorted(placeholders))}"
        )
    return None


def _resolve_document_store(s: Settings) -> BackendConfig:
    name = "firestore"
    problem = _check_values(
        name,
        {
            "firebase_api_key": _secret(s.firebase_api_key),
            "firebase_project_id": s.firebase_project_id,
        },
    )
    if problem:
        return problem
    return BackendConfig.ready(
        name,
        api_key=_secret(s.firebase_api_key),
        project_id=s.firebase_project_id,
        service_account_key=_secret(s.firebase_service_account_key),
        service_account_path=s.firebase_service_account_path,
    )


def _resolve_object_store(s: Settings) -> BackendConfig:
    backend = s.object_store_backend
    if backend == "s3":
        name = "s3"
        problem = _check_values(name, {"s3_bucket": s.s3_bucket})
        if problem:
            return problem
        return BackendConfig.ready(
            name,
            bucket=s.s3_bucket,
            region=s.s3_region,
            endpoint_url=s.s3_endpoint_url,
            access_key=s.s3_access_key,
            secret_key=_secret(s.s3_secret_key),
        )
    if backend != "firebase":
        return BackendConfig.invalid(
            "object_store",
            f"unknown object_store_backend {backend!r}; expected 'firebase' or 's3'",
        )
    name = "firebase_storage"
    problem = _check_values(
        name,
        {
            "firebase_api_key": _secret(s.firebase_api_key),
            "firebase_project_id": s.firebase_project_id,
            "firebase_storage_bucket": s.firebase_storage_bucket,
        },
    )
    if problem:
        return problem
    return BackendConfig.ready(
        name,
        api_key=_secret(s.firebase_api_key),
        bucket=s.firebase_storage_bucket,
        service_account_key=_secret(s.firebase_service_account_key),
        service_account_path=s.firebase_service_account_path,
    )


def _resolve_webdav(s: Settings) -> BackendConfig:
    name = "webdav"
    problem = _check_values(
        name,
        {
            "webdav_url": s.webdav_url,
            "webdav_username": s.webdav_username,
            "webdav_password": _secret(s.webdav_password),
        },
    )
    if problem:
        return problem
    return BackendConfig.ready(
        name,
        url=s.webdav_url.rstrip("/"),
        username=s.webdav_username,
        password=_secret(s.webdav_password),
        base_path=s.webdav_base_path or "",
    )


def _resolve_nas(s: Settings) -> BackendConfig:
    name = "nas"
    if is_placeholder(s.nas_url):
        if s.nas_url and s.nas_url.strip():
            return BackendConfig.invalid(name, "placeholder value in nas_url")
        return BackendConfig.unconfigured(name)
    method = s.nas_upload_method
    base = {"url": s.nas_url.rstrip("/"), "method": method}
    if method == "http":
        token = _secret(s.nas_http_token)
        if token and is_placeholder(token):
            return BackendConfig.invalid(name, "placeholder value in nas_http_token")
        return BackendConfig.ready(
            name, endpoint=s.nas_http_endpoint, token=token or None, **base
        )
    if method == "filestation":
        problem = _check_values(
            name,
            {"nas_api_user": s.nas_api_user, "nas_api_pass": _secret(s.nas_api_pass)},
        )
        if problem:
            if problem.state is ConfigState.UNCONFIGURED:
                return BackendConfig.invalid(name, "filestation requires nas_api_user/nas_api_pass")
            return problem
        return BackendConfig.ready(
            name,
            username=s.nas_api_user,
            password=_secret(s.nas_api_pass),
            target_folder=s.nas_target_folder,
            **base,
        )
    if method == "webdav":
        return BackendConfig.ready(
            name,
            webdav_path=s.nas_webdav_path,
            username=s.nas_webdav_user or None,
            password=_secret(s.nas_webdav_pass) or None,
            **base,
        )
    return BackendConfig.invalid(
        name, f"unsupported nas_upload_method {method!r}; expected http, filestation or webdav"
    )


def resolve_backends(settings: Settings | None = None) -> ResolvedBackends:
    """Resolve every backend's configuration once from settings.

    Args:
        settings: Application settings; if None, uses get_settings().

    Returns:
        ResolvedBackends with one BackendConfig per backend.
    """
    s = settings or get_settings()
    return ResolvedBackends(
        document_store=_resolve_document_store(s),
        object_store=_resolve_object_store(s),
        webdav=_resolve_webdav(s),
        nas=_resolve_nas(s),
    )
