"""Firebase credentials and Firestore client construction.

Credentials come from the resolved document-store BackendConfig: a
service account given as a JSON string (FIREBASE_SERVICE_ACCOUNT_KEY) or
a file path (FIREBASE_SERVICE_ACCOUNT_PATH) enables bearer-token auth;
without one the web API key is used.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx

from fieldlog.core.config import BackendConfig
from fieldlog.domain.exceptions import ConfigurationException
from fieldlog.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    build_credentials,
)

logger = logging.getLogger(__name__)


def _parse_key(config: BackendConfig, raw: str, source: str) -> dict:
    try:
        key = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationException(config.name, f"{source} is not valid JSON") from e
    if not isinstance(key, dict) or "client_email" not in key:
        raise ConfigurationException(config.name, f"{source} is not a service account key")
    return key


def load_service_account(config: BackendConfig) -> dict | None:
    """Service account key from FIREBASE_SERVICE_ACCOUNT_KEY or the key file.

    None when neither is set (API-key auth). The inline key wins when
    both are given.

    Raises:
        ConfigurationException: The key is not JSON, is not a service
            account key, or the key file cannot be read.
    """
    inline = config.credentials.get("service_account_key")
    if inline:
        return _parse_key(config, inline, "FIREBASE_SERVICE_ACCOUNT_KEY")
    path = config.credentials.get("service_account_path")
    if not path:
        return None
    key_file = Path(path).expanduser()
    try:
        raw = key_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationException(
            config.name, f"cannot read FIREBASE_SERVICE_ACCOUNT_PATH {key_file}: {e.strerror}"
        ) from e
    return _parse_key(config, raw, str(key_file))


def service_account_credentials(config: BackendConfig, scopes: list[str] | None = None):
    """google-auth credentials for config, or None to fall back to the API key."""
    key_dict = load_service_account(config)
    if not key_dict:
        return None
    return build_credentials(key_dict, scopes)


def create_firestore_client(
    config: BackendConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> FirestoreRESTClient:
    """Build a Firestore REST client from a READY document-store config.

    Raises:
        ConfigurationException: config is not READY or the service account is malformed.
    """
    if not config.is_ready:
        raise ConfigurationException(config.name, config.reason or config.state.value)
    credentials = service_account_credentials(config)
    logger.info(
        "Firestore client for project %s (%s auth)",
        config.credentials["project_id"],
        "service account" if credentials else "api key",
    )
    return FirestoreRESTClient(
        config.credentials["project_id"],
        credentials,
        api_key=config.credentials.get("api_key"),
        http_client=http_client,
        timeout=timeout,
    )
