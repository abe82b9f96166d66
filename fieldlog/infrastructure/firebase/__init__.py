"""Firestore REST integration (no firebase-admin)."""

from fieldlog.infrastructure.firebase.client import create_firestore_client
from fieldlog.infrastructure.firebase.record_driver import FirestoreRecordDriver

__all__ = [
    "FirestoreRecordDriver",
    "create_firestore_client",
]
