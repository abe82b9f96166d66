"""Photo reference diagnostics: classify, verify and clean up stored references.

scan() is read-only. cleanup_inconsistent_references() is the only write
path and requires explicit confirmation.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fieldlog.application.image_normalizer import is_inline_reference
from fieldlog.application.storage_adapter import StorageAdapter
from fieldlog.core.constants import FIREBASE_STORAGE_DOMAIN, PHOTO_ROOT
from fieldlog.domain.enums import BackendKind, RecordType
from fieldlog.domain.exceptions import CleanupNotConfirmedException
from fieldlog.infrastructure.drivers.firebase_storage import probe_reference
from fieldlog.schemas.diagnostics import CleanupResult, DiagnosticsReport, InconsistentReference
from fieldlog.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_PROBE_CONCURRENCY = 8
_REPORTED_KINDS = (
    BackendKind.INLINE,
    BackendKind.OBJECT_STORE,
    BackendKind.WEBDAV,
    BackendKind.NAS,
    BackendKind.EXTERNAL,
)


class DiagnosticsScanner:
    """Scans every record's photo references through the storage adapter."""

    def __init__(self, adapter: StorageAdapter) -> None:
        self._adapter = adapter

    def classify(self, reference: str) -> BackendKind:
        """Backend a reference points to; only prefixes and hosts are inspected."""
        if is_inline_reference(reference):
            return BackendKind.INLINE
        drivers = self._adapter.drivers
        if drivers.object_store is not None and drivers.object_store.owns_reference(reference):
            return BackendKind.OBJECT_STORE
        if FIREBASE_STORAGE_DOMAIN in reference:
            return BackendKind.OBJECT_STORE
        if drivers.webdav is not None and drivers.webdav.owns_reference(reference):
            return BackendKind.WEBDAV
        if drivers.nas is not None and drivers.nas.owns_reference(reference):
            return BackendKind.NAS
        return BackendKind.EXTERNAL

    async def reference_exists(self, reference: str) -> bool | None:
        """Existence of an object-store reference; None when it cannot be told."""
        drivers = self._adapter.drivers
        store = drivers.object_store
        if store is not None and store.owns_reference(reference):
            return await store.reference_exists(reference)
        # Download URLs carry their own token, so they can be checked without the bucket
        if FIREBASE_STORAGE_DOMAIN in reference and drivers.http_client is not None:
            return await probe_reference(
                drivers.http_client, reference, self._adapter.settings.connect_timeout_seconds
            )
        return None

    async def scan(self) -> DiagnosticsReport:
        """Count references per backend and find object-store links that no longer resolve."""
        unavailable: list[str] = []
        personal = await self._adapter.get_personal_records()
        coordinator = await self._adapter.get_coordinator_records()
        if personal.degraded or coordinator.degraded:
            unavailable.append(BackendKind.DOCUMENT_STORE.value)

        counts = {kind.value: 0 for kind in _REPORTED_KINDS}
        candidates: list[InconsistentReference] = []

        for record in personal.value:
            for field, reference in record.photo_fields().items():
                if not reference:
                    continue
                kind = self.classify(reference)
                counts[kind.value] += 1
                if kind is BackendKind.OBJECT_STORE:
                    candidates.append(
                        InconsistentReference(
                            RecordType.PERSONAL, record.id, record.name, field, reference
                        )
                    )

        for record in coordinator.value:
            for index, reference in enumerate(record.photo_urls):
                if not reference:
                    continue
                kind = self.classify(reference)
                counts[kind.value] += 1
                if kind is BackendKind.OBJECT_STORE:
                    candidates.append(
                        InconsistentReference(
                            RecordType.COORDINATOR,
                            record.id,
                            record.coordinator_name,
                            "photoUrls",
                            reference,
                            index,
                        )
                    )

        semaphore = asyncio.Semaphore(_PROBE_CONCURRENCY)

        async def check(candidate: InconsistentReference) -> bool | None:
            async with semaphore:
                return await self.reference_exists(candidate.reference)

        outcomes = await asyncio.gather(*(check(c) for c in candidates))
        inconsistent = [c for c, exists in zip(candidates, outcomes) if exists is False]
        if any(exists is None for exists in outcomes):
            logger.info(
                "%d object-store reference(s) could not be verified",
                sum(1 for exists in outcomes if exists is None),
            )

        stored = 0
        store = self._adapter.drivers.object_store
        if store is not None:
            result = await store.count_objects(f"{PHOTO_ROOT}/")
            if result.success:
                stored = result.value or 0
            else:
                logger.warning("Object count unavailable: %s", result.error)
                unavailable.append(BackendKind.OBJECT_STORE.value)

        total = sum(counts.values())
        logger.info(
            "Photo diagnostics: %d reference(s), %d inconsistent, %d stored object(s)",
            total,
            len(inconsistent),
            stored,
        )
        return DiagnosticsReport(
            counts_by_backend=counts,
            total_referenced_photos=total,
            inconsistent_references=inconsistent,
            stored_object_count=stored,
            unavailable_backends=unavailable,
            scanned_at=utc_now(),
        )

    async def cleanup_inconsistent_references(
        self, report: DiagnosticsReport, *, confirmed: bool = False
    ) -> CleanupResult:
        """Remove the report's inconsistent references from their records.

        Personal photo fields are set to null. Coordinator list entries are
        removed by reported position, so an unreported duplicate of a
        dangling URL stays. Records themselves are never deleted. References
        that are already gone are skipped, so a repeated cleanup cleans 0.

        Raises:
            CleanupNotConfirmedException: confirmed is not True.
        """
        pending = report.inconsistent_references
        if confirmed is not True:
            raise CleanupNotConfirmedException(len(pending))
        if not pending:
            return CleanupResult(cleaned=0)

        grouped: dict[tuple[RecordType, str], list[InconsistentReference]] = defaultdict(list)
        for ref in pending:
            grouped[(ref.record_type, ref.record_id)].append(ref)

        personal = {r.id: r for r in (await self._adapter.get_personal_records()).value}
        coordinator = {r.id: r for r in (await self._adapter.get_coordinator_records()).value}

        cleaned = 0
        updated = 0
        for (record_type, record_id), refs in grouped.items():
            if record_type is RecordType.PERSONAL:
                record = personal.get(record_id)
                if record is None:
                    continue
                current = record.photo_fields()
                fields = {
                    ref.field: None for ref in refs if ref.reference and current.get(ref.field) == ref.reference
                }
                removed = len(fields)
            else:
                record = coordinator.get(record_id)
                if record is None:
                    continue
                urls = record.photo_urls
                # Only reported positions that still hold the reported reference
                drop = {
                    ref.index
                    for ref in refs
                    if ref.index is not None and 0 <= ref.index < len(urls) and urls[ref.index] == ref.reference
                }
                kept = [url for i, url in enumerate(urls) if i not in drop]
                removed = len(drop)
                fields = {"photoUrls": kept}
            if not removed:
                continue
            result = await self._adapter.update_record_fields(record_type, record_id, fields)
            if result.value:
                cleaned += removed
                updated += 1
            else:
                logger.warning("Cleanup could not update %s record %s", record_type.value, record_id)

        logger.info("Cleaned %d photo reference(s) across %d record(s)", cleaned, updated)
        return CleanupResult(cleaned=cleaned, records_updated=updated)
