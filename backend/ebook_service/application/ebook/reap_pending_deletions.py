# ebook_service/application/ebook/reap_pending_deletions.py
"""
Deferred-deletion sweep.

Each due entry is re-validated against the usage ledger right before the
object is removed: a key that became live again during the grace window
is dropped from the queue and its object kept. The storage delete runs
while the usage row is locked, so a key cannot become live again between
that check and the delete; the lock is held for one DELETE call per entry.
"""
import json
import time
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy import select

from ebook_service.domain.exceptions import ConflictOrRace
from ebook_service.extensions import db
from ebook_service.models.pending_deletion import PendingDeletion
from ebook_service.utils.clock import after, normalize_ts, utcnow
from ebook_service.utils.ledger import upsert_usage
from ebook_service.utils.pending import deletion_ttl, lock_pending
from ebook_service.utils.storage import ObjectStorage, StorageError, require_storage
from ebook_service.utils.transaction import transactional

DELETED = "deleted"
RETAINED = "retained"
ERROR = "error"
ABANDONED = "abandoned"
SKIPPED = "skipped"


@dataclass
class ReapResult:
    checked: int = 0
    deleted: int = 0
    retained: int = 0
    errors: int = 0
    abandoned: int = 0
    skipped: int = 0
    error_reasons: Dict[str, int] = field(default_factory=dict)
    deleted_keys: List[str] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


def classify_storage_error(exc: StorageError) -> str:
    code = (exc.code or "").lower()
    message = str(exc).lower()

    if "accessdenied" in code or "accessdenied" in message:
        return "s3_access_denied"
    if "timeout" in code or "timeout" in message or "timed out" in message:
        return "s3_timeout"
    if "nosuchkey" in code or "notfound" in code or "notfound" in message:
        return "s3_not_found"
    return "s3_delete_error"


def due_keys(now, batch_size: int) -> List[str]:
    with transactional():
        rows = db.session.execute(
            select(PendingDeletion.media_key)
            .where(PendingDeletion.not_before <= now)
            .order_by(PendingDeletion.not_before.asc())
            .limit(batch_size)
        ).scalars().all()
    return list(rows)


def _reap_locked(
    media_key: str,
    *,
    storage: ObjectStorage,
    now,
    ttl: int,
    max_attempts: int,
    result: ReapResult,
) -> str:
    """
    Handle one entry inside a single transaction.

    The usage row stays locked from the liveness check until the object
    is gone, so an autosave or version that re-references the key waits
    for this entry instead of racing the delete. Raises ConflictOrRace
    after cancelling an entry whose key is live again.
    """
    with transactional():
        # Usage row before queue row, the order every other writer uses.
        # Created zeroed when missing so there is always a row to hold.
        usage = upsert_usage(media_key, now=now)

        entry = lock_pending(media_key)
        if entry is None:
            return SKIPPED  # handled by someone else already
        if normalize_ts(entry.not_before) > now:
            return SKIPPED  # re-scheduled since the batch was read

        if usage.is_live:
            db.session.delete(entry)
        elif entry.attempts >= max_attempts:
            entry.last_checked_at = now
            entry.not_before = after(ttl, now=now)
            current_app.logger.critical(
                "Media %s still not deleted after %d attempts; manual cleanup required",
                media_key,
                entry.attempts,
            )
            return ABANDONED
        else:
            try:
                storage.delete(media_key, bucket=storage.media_bucket)
            except StorageError as exc:
                reason = classify_storage_error(exc)
                result.error_reasons[reason] = result.error_reasons.get(reason, 0) + 1
                current_app.logger.warning(
                    "Failed to delete media %s (%s): %s", media_key, reason, exc
                )
                entry.attempts = (entry.attempts or 0) + 1
                entry.last_checked_at = now
                entry.not_before = after(ttl, now=now)
                return ERROR

            db.session.delete(entry)
            return DELETED

    # Only reached after a cancellation.
    raise ConflictOrRace(media_key)


def reap_one(
    media_key: str,
    *,
    storage: ObjectStorage,
    now,
    ttl: int,
    max_attempts: int,
    result: ReapResult,
) -> str:
    try:
        outcome = _reap_locked(
            media_key,
            storage=storage,
            now=now,
            ttl=ttl,
            max_attempts=max_attempts,
            result=result,
        )
    except ConflictOrRace:
        outcome = RETAINED

    if outcome == DELETED:
        result.deleted += 1
        result.deleted_keys.append(media_key)
    elif outcome == RETAINED:
        result.retained += 1
    elif outcome == ERROR:
        result.errors += 1
    elif outcome == ABANDONED:
        result.abandoned += 1
    else:
        result.skipped += 1
    return outcome


def reap_pending_deletions(
    *,
    now=None,
    storage: Optional[ObjectStorage] = None,
    batch_size: Optional[int] = None,
    max_attempts: Optional[int] = None,
) -> ReapResult:
    """
    Run one sweep over the due pending deletions.

    Re-running a sweep is harmless: entries already cancelled or deleted
    are simply no longer in the queue.
    """
    started = time.monotonic()
    cfg = current_app.config
    storage = require_storage(storage)
    now = now or utcnow()
    batch_size = batch_size or int(cfg["MEDIA_REAPER_BATCH_SIZE"])
    max_attempts = max_attempts or int(cfg["MEDIA_REAPER_MAX_ATTEMPTS"])
    ttl = deletion_ttl()

    result = ReapResult()
    keys = due_keys(now, batch_size)
    result.checked = len(keys)

    for key in keys:
        reap_one(
            key,
            storage=storage,
            now=now,
            ttl=ttl,
            max_attempts=max_attempts,
            result=result,
        )

    summary = {
        "event": "ebook.media.reap",
        "checked": result.checked,
        "deleted_count": result.deleted,
        "retained_count": result.retained,
        "error_count": result.errors,
        "abandoned_count": result.abandoned,
        "error_reasons": result.error_reasons,
        "execution_duration_ms": int((time.monotonic() - started) * 1000),
        "ts": utcnow().isoformat(),
    }
    current_app.logger.info(json.dumps(summary))

    return result
