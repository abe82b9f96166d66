"""Application layer: storage adapter, naming, image normalization, diagnostics."""

from fieldlog.application.aggregates import RecordTotals, summarize_records
from fieldlog.application.diagnostics import DiagnosticsScanner
from fieldlog.application.image_normalizer import (
    NormalizedImage,
    is_inline_reference,
    normalize_image,
    normalize_to_budget,
)
from fieldlog.application.naming import synthesize_photo_location
from fieldlog.application.session import FormSession
from fieldlog.application.storage_adapter import StorageAdapter

__all__ = [
    "DiagnosticsScanner",
    "FormSession",
    "NormalizedImage",
    "RecordTotals",
    "StorageAdapter",
    "is_inline_reference",
    "normalize_image",
    "normalize_to_budget",
    "summarize_records",
    "synthesize_photo_location",
]
