"""Storage drivers: local JSON store and photo upload targets.

The S3 driver is not imported here: it needs boto3 (the "storage"
extra) and is loaded lazily by the factory when OBJECT_STORE_BACKEND=s3.
"""

from fieldlog.infrastructure.drivers.firebase_storage import FirebaseStorageDriver
from fieldlog.infrastructure.drivers.local_store import LocalRecordStore
from fieldlog.infrastructure.drivers.nas import NASPhotoDriver
from fieldlog.infrastructure.drivers.protocol import (
    ObjectStoreDriver,
    PhotoDriver,
    RecordDriver,
    StorageDrivers,
)
from fieldlog.infrastructure.drivers.webdav import WebDAVPhotoDriver

__all__ = [
    "FirebaseStorageDriver",
    "LocalRecordStore",
    "NASPhotoDriver",
    "ObjectStoreDriver",
    "PhotoDriver",
    "RecordDriver",
    "StorageDrivers",
    "WebDAVPhotoDriver",
]
