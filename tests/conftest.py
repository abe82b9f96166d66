"""Pytest configuration and fixtures for fieldlog.

Settings are built explicitly (no .env, backend env vars cleared) so a
developer's local configuration never leaks into tests. The local store
always lives under tmp_path.
"""

import io
from collections.abc import Callable

import pytest
from PIL import Image

from fieldlog.core.config import Settings, get_settings, resolve_backends
from fieldlog.infrastructure.drivers.local_store import LocalRecordStore
from fieldlog.infrastructure.drivers.protocol import StorageDrivers

_BACKEND_ENV_VARS = [name.upper() for name in Settings.model_fields]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Drop backend env vars and the cached settings for every test."""
    for var in _BACKEND_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings(tmp_path) -> Callable[..., Settings]:
    """Factory for Settings with the local store under tmp_path."""

    def _make(**overrides) -> Settings:
        overrides.setdefault("local_storage_root", str(tmp_path / "store"))
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    """Settings with no remote backend configured."""
    return make_settings()


@pytest.fixture
def local_store(tmp_path) -> LocalRecordStore:
    return LocalRecordStore(tmp_path / "store")


@pytest.fixture
def local_adapter(settings, local_store):
    """StorageAdapter with only the local store (nothing configured)."""
    from fieldlog.application.storage_adapter import StorageAdapter

    return StorageAdapter(
        resolve_backends(settings),
        StorageDrivers(local=local_store),
        settings=settings,
    )


@pytest.fixture
def make_jpeg() -> Callable[..., bytes]:
    """Factory for JPEG bytes of a given size (noise makes them hard to compress)."""

    def _make(width: int, height: int, *, noise: bool = False, quality: int = 90) -> bytes:
        if noise:
            img = Image.effect_noise((width, height), 80).convert("RGB")
        else:
            img = Image.new("RGB", (width, height), (120, 160, 200))
        out = io.BytesIO()
        img.save(out, format="JPEG", quality=quality)
        return out.getvalue()

    return _make
