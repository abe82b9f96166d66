"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when you first write a document. The same names key the local fallback
store, so both backends agree on where an entity lives.
"""

from fieldlog.core.constants import (
    COLLECTION_COORDINATOR_RECORDS,
    COLLECTION_PERSONAL_RECORDS,
    COLLECTION_PROJECTS,
)

RECORD_COLLECTIONS = (
    COLLECTION_PROJECTS,
    COLLECTION_PERSONAL_RECORDS,
    COLLECTION_COORDINATOR_RECORDS,
)

# Stored field names used by queries
FIELD_CREATED_AT = "createdAt"
FIELD_PROJECT_ID = "projectId"

__all__ = [
    "COLLECTION_COORDINATOR_RECORDS",
    "COLLECTION_PERSONAL_RECORDS",
    "COLLECTION_PROJECTS",
    "FIELD_CREATED_AT",
    "FIELD_PROJECT_ID",
    "RECORD_COLLECTIONS",
]
