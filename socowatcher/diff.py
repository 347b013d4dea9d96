"""Fingerprinting and change detection for crawled housing complexes."""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, Iterable, Optional, Protocol, Sequence, Tuple

from .models import (
    Classification,
    ListingRecord,
    PendingUpdate,
    PersistedRecord,
    SyncPlan,
)

logger = logging.getLogger(__name__)

# Stored hashes depend on this exact join; "|" also appears inside descriptions.
FINGERPRINT_SEPARATOR = "|"

RecordKey = Tuple[str, str]


class ListingStore(Protocol):
    """Storage operations the diff engine relies on."""

    def find_all(self) -> Sequence[PersistedRecord]:
        ...

    def create(self, record: ListingRecord, data_hash: str) -> PersistedRecord:
        ...

    def update(self, record_id: int, record: ListingRecord,
               data_hash: str) -> PersistedRecord:
        ...


def compute_fingerprint(record: ListingRecord) -> str:
    """SHA-256 over name, district, address, detail URL and description.

    The image URL does not participate.
    """
    data = FINGERPRINT_SEPARATOR.join([
        record.name,
        record.district,
        record.address or "",
        record.detail_url or "",
        record.description or "",
    ])
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def record_key(record: ListingRecord | PersistedRecord) -> RecordKey:
    return (record.name, record.district)


def build_lookup(
        persisted: Iterable[PersistedRecord]) -> Dict[RecordKey, PersistedRecord]:
    """Index persisted records by (name, district); the first one seen wins."""
    lookup: Dict[RecordKey, PersistedRecord] = {}
    for record in persisted:
        lookup.setdefault(record_key(record), record)
    return lookup


def classify(
    record: ListingRecord,
    existing: Optional[PersistedRecord],
    data_hash: Optional[str] = None,
) -> Classification:
    if existing is None:
        return Classification.NEW
    if data_hash is None:
        data_hash = compute_fingerprint(record)
    if existing.data_hash == data_hash:
        return Classification.UNCHANGED
    return Classification.CHANGED


def plan_sync(
    crawled: Iterable[ListingRecord],
    persisted: Iterable[PersistedRecord],
) -> SyncPlan:
    """Decide storage actions and the change set without touching storage.

    New records are created but never reported as changes. Records whose
    fingerprint drifted are updated, and reported only when their
    description differs from the stored one. Persisted records missing from
    the crawl are left alone.
    """
    lookup = build_lookup(persisted)
    plan = SyncPlan()

    for record in crawled:
        data_hash = compute_fingerprint(record)
        existing = lookup.get(record_key(record))
        status = classify(record, existing, data_hash)

        if status is Classification.NEW:
            plan.created.append((record, data_hash))
            continue

        if status is Classification.UNCHANGED:
            plan.unchanged.append(record)
            continue

        plan.updated.append(
            PendingUpdate(
                record_id=existing.id,
                record=record,
                data_hash=data_hash,
                previous_description=existing.description,
            ))
        if existing.description != record.description:
            plan.changes.append(record)

    return plan


def apply_sync(store: ListingStore,
               crawled: Sequence[ListingRecord]) -> SyncPlan:
    """Reconcile crawled records with storage, one independent write per record."""
    plan = plan_sync(crawled, store.find_all())

    for record, data_hash in plan.created:
        store.create(record, data_hash)
    for pending in plan.updated:
        store.update(pending.record_id, pending.record, pending.data_hash)

    logger.info(
        "Reconciled %d records: %d created, %d updated, %d unchanged, %d changes",
        len(crawled),
        len(plan.created),
        len(plan.updated),
        len(plan.unchanged),
        len(plan.changes),
    )
    return plan
