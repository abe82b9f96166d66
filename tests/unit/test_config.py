"""Settings validation and typed backend resolution (placeholders, missing values)."""

import pytest
from pydantic import ValidationError

from fieldlog.core.config import ConfigState, Settings, get_settings, is_placeholder, resolve_backends


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "your_api_key_here", "YOUR_PROJECT_ID", "your-project-id", "https://your_nas.example"],
)
def test_is_placeholder_true(value) -> None:
    assert is_placeholder(value) is True


@pytest.mark.parametrize("value", ["AIzaSyA-real-key", "fieldlog-prod", "https://nas.example:5001"])
def test_is_placeholder_false(value) -> None:
    assert is_placeholder(value) is False


def test_nothing_configured_resolves_unconfigured(settings) -> None:
    """Empty settings leave every backend UNCONFIGURED (not an error)."""
    backends = resolve_backends(settings)
    assert backends.document_store.state is ConfigState.UNCONFIGURED
    assert backends.object_store.state is ConfigState.UNCONFIGURED
    assert backends.webdav.state is ConfigState.UNCONFIGURED
    assert backends.nas.state is ConfigState.UNCONFIGURED


def test_placeholder_api_key_makes_document_store_invalid(make_settings) -> None:
    """A template value such as 'your_api_key' disables the backend."""
    s = make_settings(firebase_api_key="your_api_key", firebase_project_id="fieldlog-prod")
    backends = resolve_backends(s)
    assert backends.document_store.state is ConfigState.INVALID
    assert "firebase_api_key" in backends.document_store.reason
    assert not backends.document_store.is_ready


def test_missing_project_id_is_invalid(make_settings) -> None:
    backends = resolve_backends(make_settings(firebase_api_key="AIza-real"))
    assert backends.document_store.state is ConfigState.INVALID
    assert "firebase_project_id" in backends.document_store.reason


def test_firebase_ready_with_real_values(make_settings) -> None:
    s = make_settings(
        firebase_api_key="AIza-real",
        firebase_project_id="fieldlog-prod",
        firebase_storage_bucket="fieldlog-prod.appspot.com",
    )
    backends = resolve_backends(s)
    assert backends.document_store.is_ready
    assert backends.document_store.credentials["project_id"] == "fieldlog-prod"
    assert backends.object_store.name == "firebase_storage"
    assert backends.object_store.credentials["bucket"] == "fieldlog-prod.appspot.com"


def test_credentials_not_in_repr(make_settings) -> None:
    s = make_settings(firebase_api_key="AIza-secret-value", firebase_project_id="p1")
    assert "AIza-secret-value" not in repr(resolve_backends(s).document_store)


def test_s3_object_store(make_settings) -> None:
    s = make_settings(object_store_backend="S3", s3_bucket="photos-bucket", s3_region="eu-west-1")
    config = resolve_backends(s).object_store
    assert config.is_ready
    assert config.name == "s3"
    assert config.credentials["region"] == "eu-west-1"


def test_unknown_object_store_backend_is_invalid(make_settings) -> None:
    config = resolve_backends(make_settings(object_store_backend="gcs")).object_store
    assert config.state is ConfigState.INVALID


def test_webdav_requires_all_values(make_settings) -> None:
    partial = resolve_backends(make_settings(webdav_url="https://dav.example")).webdav
    assert partial.state is ConfigState.INVALID

    full = resolve_backends(
        make_settings(
            webdav_url="https://dav.example/",
            webdav_username="field",
            webdav_password="secret",
        )
    ).webdav
    assert full.is_ready
    assert full.credentials["url"] == "https://dav.example"


def test_nas_filestation_requires_account(make_settings) -> None:
    config = resolve_backends(
        make_settings(nas_url="https://nas.example:5001", nas_upload_method="filestation")
    ).nas
    assert config.state is ConfigState.INVALID


def test_nas_http_ready_without_token(make_settings) -> None:
    config = resolve_backends(
        make_settings(nas_url="https://nas.example", nas_upload_method="http")
    ).nas
    assert config.is_ready
    assert config.credentials["endpoint"] == "/upload"
    assert config.credentials["token"] is None


def test_nas_placeholder_url_is_invalid(make_settings) -> None:
    config = resolve_backends(make_settings(nas_url="https://your_nas_address")).nas
    assert config.state is ConfigState.INVALID


def test_nas_unknown_method_is_invalid(make_settings) -> None:
    config = resolve_backends(make_settings(nas_url="https://nas.example", nas_upload_method="ftp")).nas
    assert config.state is ConfigState.INVALID


def test_timeouts_must_be_positive(make_settings) -> None:
    with pytest.raises(ValidationError):
        make_settings(connect_timeout_seconds=0)


def test_get_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """get_settings() is cached; cache_clear() picks up new env values."""
    monkeypatch.setenv("WEBDAV_URL", "https://dav.example")
    get_settings.cache_clear()
    assert get_settings().webdav_url == "https://dav.example"
    assert get_settings() is get_settings()


def test_settings_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.photo_size_budget_bytes == 900 * 1024
    assert s.connect_timeout_seconds == 5.0
    assert s.operation_timeout_seconds == 30.0
    assert s.nas_upload_method == "webdav"
