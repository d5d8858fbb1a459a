from typing import Iterable, List

from flask import current_app

from ebook_service.models.pending_deletion import PendingDeletion
from ebook_service.utils.clock import after, normalize_ts, utcnow
from ebook_service.utils.ledger import lock_usage
from ebook_service.utils.upsert import get_or_create_locked, lock_row


def deletion_ttl() -> int:
    return int(current_app.config["MEDIA_DELETION_TTL_SECONDS"])


def lock_pending(media_key: str) -> PendingDeletion | None:
    return lock_row(PendingDeletion, PendingDeletion.media_key, media_key)


def schedule_deletion(media_key: str, *, ttl: int | None = None, now=None) -> PendingDeletion:
    """
    Queue media_key for physical deletion once the grace period has passed.

    Re-scheduling an existing entry refreshes requested_at and can only
    push not_before later, never earlier.
    """
    now = now or utcnow()
    deadline = after(deletion_ttl() if ttl is None else ttl, now=now)

    entry = get_or_create_locked(
        PendingDeletion,
        PendingDeletion.media_key,
        media_key,
        lambda: PendingDeletion(
            media_key=media_key,
            requested_at=now,
            not_before=deadline,
            attempts=0,
        ),
    )

    entry.requested_at = now
    current = normalize_ts(entry.not_before)
    entry.not_before = max(current, deadline) if current else deadline
    return entry


def schedule_if_unreferenced(media_keys: Iterable[str], *, ttl: int | None = None, now=None) -> List[str]:
    """Schedule every key whose usage is no longer live. Returns the scheduled keys."""
    scheduled = []
    for key in sorted(set(media_keys)):
        usage = lock_usage(key)
        if usage is not None and usage.is_live:
            continue
        schedule_deletion(key, ttl=ttl, now=now)
        scheduled.append(key)
    return scheduled


def list_pending(*, limit: int, offset: int) -> List[PendingDeletion]:
    return (
        PendingDeletion.query
        .order_by(PendingDeletion.not_before.asc(), PendingDeletion.media_key.asc())
        .limit(limit)
        .offset(offset)
        .all()
    )
