"""Core constants: collection names, size budgets, timeouts and naming labels.

Single source of truth for literal values shared by the adapter,
drivers and synthesizer.
"""

# Collections (same names in Firestore and in the local fallback)
COLLECTION_PROJECTS = "projects"
COLLECTION_PERSONAL_RECORDS = "personalRecords"
COLLECTION_COORDINATOR_RECORDS = "coordinatorRecords"

# Local fallback file per collection
LOCAL_COLLECTION_FILES = {
    COLLECTION_PROJECTS: "projects.json",
    COLLECTION_PERSONAL_RECORDS: "personal_records.json",
    COLLECTION_COORDINATOR_RECORDS: "coordinator_records.json",
}

# Values containing any of these are treated as "not configured"
PLACEHOLDER_SENTINELS = ("your_", "your-project")

# Inline photos: Firestore caps a document at 1 MiB
DEFAULT_PHOTO_SIZE_BUDGET_BYTES = 900 * 1024
FIRST_PASS_BOUNDS = (800, 600)
FIRST_PASS_QUALITY = 0.7
SECOND_PASS_BOUNDS = (600, 400)
SECOND_PASS_QUALITY = 0.5

DEFAULT_CONNECT_TIMEOUT_SECONDS = 5.0
DEFAULT_OPERATION_TIMEOUT_SECONDS = 30.0

# Object keys for photos live under this root
PHOTO_ROOT = "photos"
FIREBASE_STORAGE_DOMAIN = "firebasestorage.googleapis.com"

# Synthesizer labels
UNSPECIFIED_LABEL = "unspecified"
UNKNOWN_PROJECT = "unknown-project"
UNKNOWN_PERSON = "unknown-person"
COORDINATOR_DISCRIMINATOR = "coordinator"
DEFAULT_EXTENSION = "jpg"

PHOTO_LABELS = {
    "departure": "departure-mileage",
    "return": "return-mileage",
    "site": "site-record",
    "electricity": "electricity-record",
    "water": "water-record",
    "meal": "meal-record",
    "recycle": "recycle-record",
}
