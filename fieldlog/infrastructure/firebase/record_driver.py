"""Firestore-backed record driver (implements RecordDriver)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fieldlog.infrastructure.firebase._rest_client import (
    FirestoreRequestError,
    FirestoreRESTClient,
)
from fieldlog.infrastructure.firebase.collections import (
    COLLECTION_PROJECTS,
    FIELD_CREATED_AT,
    FIELD_PROJECT_ID,
)
from fieldlog.schemas.results import DriverResult
from fieldlog.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

# Failures a driver reports as a result rather than raising
_EXPECTED_ERRORS = (FirestoreRequestError, httpx.HTTPError, ValueError)


class FirestoreRecordDriver:
    """Record storage in Firestore; ordering and filtering run server-side (runQuery)."""

    name = "firestore"

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    async def store(self, collection: str, data: dict[str, Any]) -> DriverResult[dict[str, Any]]:
        """Create a document with a server-generated id and createdAt = now."""
        payload = {**data, FIELD_CREATED_AT: utc_now()}
        payload.pop("id", None)
        try:
            document = await self._client.create_document(collection, payload)
        except _EXPECTED_ERRORS as e:
            logger.error("Firestore create in %s failed: %s", collection, e)
            return DriverResult.fail(str(e))
        return DriverResult.ok(document.as_record())

    async def list(
        self, collection: str, project_id: str | None = None
    ) -> DriverResult[list[dict[str, Any]]]:
        """Query newest first. Fails closed: an error yields an empty list plus the error."""
        try:
            documents = await self._client.run_query(
                collection,
                equals=(FIELD_PROJECT_ID, project_id) if project_id else None,
                order_by=FIELD_CREATED_AT,
                descending=True,
            )
        except _EXPECTED_ERRORS as e:
            logger.error("Firestore query on %s failed: %s", collection, e)
            return DriverResult.fail(str(e), value=[])
        return DriverResult.ok([document.as_record() for document in documents])

    async def update(
        self, collection: str, record_id: str, partial: dict[str, Any]
    ) -> DriverResult[bool]:
        """Update only the given fields; id and createdAt are never overwritten."""
        fields = {k: v for k, v in partial.items() if k not in ("id", FIELD_CREATED_AT)}
        if not fields:
            return DriverResult.ok(True)
        try:
            found = await self._client.update_fields(collection, record_id, fields)
        except _EXPECTED_ERRORS as e:
            logger.error("Firestore update %s/%s failed: %s", collection, record_id, e)
            return DriverResult.fail(str(e))
        return DriverResult.ok(True) if found else DriverResult.missing(False)

    async def delete(self, collection: str, record_id: str) -> DriverResult[bool]:
        try:
            found = await self._client.delete_document(collection, record_id)
        except _EXPECTED_ERRORS as e:
            logger.error("Firestore delete %s/%s failed: %s", collection, record_id, e)
            return DriverResult.fail(str(e))
        return DriverResult.ok(True) if found else DriverResult.missing(False)

    async def check_connection(self) -> bool:
        """Run a one-document query; any answer from the API counts as connected."""
        try:
            await self._client.run_query(COLLECTION_PROJECTS, order_by=FIELD_CREATED_AT, limit=1)
        except _EXPECTED_ERRORS as e:
            logger.warning("Firestore connectivity check failed: %s", e)
            return False
        return True
