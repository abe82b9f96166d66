"""Async Firestore REST client for the record collections (no firebase-admin).

Covers what the record driver needs: createDocument, runQuery with an
optional equality filter and one ordering, masked PATCH, and DELETE.
Writes to existing documents carry a ``currentDocument.exists``
precondition so a missing document comes back as NOT_FOUND instead of
being created.

Auth is a service-account bearer token (google-auth) when one is
configured, otherwise the project's web API key as ``?key=``, which is
what a browser client would send under the project's security rules.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from fieldlog.infrastructure.firebase._rest_encoding import (
    decode_document,
    document_id,
    encode_document,
    encode_value,
)

FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
FIRESTORE_API = "https://firestore.googleapis.com/v1"

_EXISTS = ("currentDocument.exists", "true")


def build_credentials(key_dict: dict, scopes: list[str] | None = None):
    """google.oauth2 service-account credentials for the given scopes."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=scopes or [FIRESTORE_SCOPE]
    )


def get_access_token(credentials) -> str:
    """Blocking token refresh; call through asyncio.to_thread."""
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class FirestoreRequestError(Exception):
    """Non-success response from the Firestore REST API."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Firestore request failed: HTTP {status_code} {body[:200]}")


@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]

    @classmethod
    def from_rest(cls, raw: dict) -> Document:
        return cls(document_id(raw), decode_document(raw))

    def as_record(self) -> dict[str, Any]:
        """Stored fields plus the document id under "id"."""
        return {**self.data, "id": self.id}


class FirestoreRESTClient:
    """Document CRUD and queries under one project's default database."""

    def __init__(
        self,
        project_id: str,
        credentials=None,
        *,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._api_key = api_key
        self._root = f"projects/{project_id}/databases/(default)/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def uses_service_account(self) -> bool:
        return self._credentials is not None

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        body: dict | None = None,
        params: list[tuple[str, str]] | None = None,
    ) -> httpx.Response | None:
        """Send one request; None on 404.

        Raises:
            FirestoreRequestError: Any other non-2xx status.
            httpx.HTTPError: Transport failures and timeouts.
        """
        query = list(params or [])
        headers = {}
        if self._credentials is not None:
            token = await asyncio.to_thread(get_access_token, self._credentials)
            headers["Authorization"] = f"Bearer {token}"
        elif self._api_key:
            query.append(("key", self._api_key))
        resp = await self._http.request(
            method, f"{FIRESTORE_API}/{path}", headers=headers, json=body, params=query
        )
        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise FirestoreRequestError(resp.status_code, resp.text)
        return resp

    async def create_document(self, collection: str, data: dict[str, Any]) -> Document:
        """Create a document with a server-generated id."""
        resp = await self._send("POST", f"{self._root}/{collection}", body=encode_document(data))
        if resp is None:
            raise FirestoreRequestError(404, f"collection {collection} not found")
        return Document.from_rest(resp.json())

    async def run_query(
        self,
        collection: str,
        *,
        equals: tuple[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        """Run a structured query; filtering and ordering happen server-side."""
        query: dict[str, Any] = {"from": [{"collectionId": collection}]}
        if equals is not None:
            field, value = equals
            query["where"] = {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": "EQUAL",
                    "value": encode_value(value),
                }
            }
        if order_by:
            query["orderBy"] = [
                {"field": {"fieldPath": order_by}, "direction": "DESCENDING" if descending else "ASCENDING"}
            ]
        if limit:
            query["limit"] = limit
        resp = await self._send("POST", f"{self._root}:runQuery", body={"structuredQuery": query})
        rows = resp.json() if resp is not None and resp.content else []
        # runQuery streams one row per result; rows without "document" only carry readTime
        return [Document.from_rest(row["document"]) for row in rows if "document" in row]

    async def update_fields(self, collection: str, doc_id: str, data: dict[str, Any]) -> bool:
        """PATCH only the given fields. False when the document does not exist."""
        params = [_EXISTS, *(("updateMask.fieldPaths", field) for field in data)]
        resp = await self._send(
            "PATCH", f"{self._root}/{collection}/{doc_id}", body=encode_document(data), params=params
        )
        return resp is not None

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        """False when the document was already missing."""
        resp = await self._send("DELETE", f"{self._root}/{collection}/{doc_id}", params=[_EXISTS])
        return resp is not None
