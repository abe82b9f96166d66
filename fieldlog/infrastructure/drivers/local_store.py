"""Local filesystem fallback for records: one JSON file per collection.

Every mutation rewrites the whole collection atomically (temp file +
rename), mirroring a key/value store holding each collection as a single
serialized array. Ids are wall-clock derived and createdAt is the local
time of the write; neither is ever reconciled with the primary backend.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from fieldlog.core.constants import LOCAL_COLLECTION_FILES
from fieldlog.schemas.results import DriverResult
from fieldlog.shared.utils.datetime import parse_iso_utc, to_iso_utc, utc_now
from fieldlog.shared.utils.generators import generate_local_id

logger = logging.getLogger(__name__)


class CorruptCollectionError(ValueError):
    """A collection file exists but does not hold a JSON array."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Local collection {path} is corrupt; refusing to overwrite it")


class LocalRecordStore:
    """Record driver over JSON collection files under storage_root.

    Writes within one process are serialized per collection; between
    processes the last write wins. OSError (disk full, permissions)
    propagates: the adapter treats it as a fatal fallback failure.
    """

    name = "local"

    def __init__(self, storage_root: str | Path) -> None:
        self.storage_root = Path(storage_root).expanduser().resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    def _path(self, collection: str) -> Path:
        """File for collection; unknown names must stay inside storage_root."""
        filename = LOCAL_COLLECTION_FILES.get(collection, f"{collection}.json")
        full_path = (self.storage_root / filename).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise ValueError(f"Invalid collection name: {collection!r}") from e
        return full_path

    async def _read(self, collection: str, *, strict: bool = False) -> list[dict[str, Any]]:
        """Documents of collection.

        A corrupt file reads as empty for listing. With strict=True (every
        mutation) it raises instead, so a rewrite never replaces records
        that could not be parsed.

        Raises:
            CorruptCollectionError: strict and the file is not a JSON array.
        """
        path = self._path(collection)
        if not path.exists():
            return []
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
        if not content.strip():
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, list):
            if strict:
                raise CorruptCollectionError(path)
            logger.error("Local collection %s is corrupt; listing it as empty", path)
            return []
        return [d for d in data if isinstance(d, dict)]

    async def _write(self, collection: str, docs: list[dict[str, Any]]) -> None:
        path = self._path(collection)
        temp_fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".json")
        os.close(temp_fd)
        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(docs, ensure_ascii=False, indent=2))
            os.replace(temp_path, path)
        finally:
            if Path(temp_path).exists():
                await aiofiles.os.remove(temp_path)

    async def store(self, collection: str, data: dict[str, Any]) -> DriverResult[dict[str, Any]]:
        async with self._lock(collection):
            docs = await self._read(collection, strict=True)
            doc = {**data, "id": generate_local_id(), "createdAt": to_iso_utc(utc_now())}
            docs.append(doc)
            await self._write(collection, docs)
        return DriverResult.ok(dict(doc))

    async def list(
        self, collection: str, project_id: str | None = None
    ) -> DriverResult[list[dict[str, Any]]]:
        docs = await self._read(collection)
        if project_id:
            docs = [d for d in docs if d.get("projectId") == project_id]
        docs.sort(key=_created_at_key, reverse=True)
        return DriverResult.ok(docs)

    async def update(
        self, collection: str, record_id: str, partial: dict[str, Any]
    ) -> DriverResult[bool]:
        fields = {k: v for k, v in partial.items() if k not in ("id", "createdAt")}
        async with self._lock(collection):
            docs = await self._read(collection, strict=True)
            for doc in docs:
                if doc.get("id") == record_id:
                    doc.update(fields)
                    await self._write(collection, docs)
                    return DriverResult.ok(True)
        return DriverResult.missing(False)

    async def delete(self, collection: str, record_id: str) -> DriverResult[bool]:
        async with self._lock(collection):
            docs = await self._read(collection, strict=True)
            remaining = [d for d in docs if d.get("id") != record_id]
            if len(remaining) == len(docs):
                return DriverResult.missing(False)
            await self._write(collection, remaining)
        return DriverResult.ok(True)

    async def check_connection(self) -> bool:
        return os.access(self.storage_root, os.W_OK)


def _created_at_key(doc: dict[str, Any]) -> tuple[float, int]:
    """Sort key: createdAt, then the numeric local id for writes in the same instant."""
    raw_id = str(doc.get("id", ""))
    id_num = int(raw_id) if raw_id.isdigit() else 0
    raw = doc.get("createdAt")
    if not isinstance(raw, str):
        return 0.0, id_num
    try:
        return parse_iso_utc(raw).timestamp(), id_num
    except ValueError:
        return 0.0, id_num
