# ebook_service/utils/ledger.py
from typing import Dict, Iterable, List, Set

from ebook_service.domain.invariants.media_usage import assert_usage
from ebook_service.domain.lifecycle.version import MANUAL, PUBLISHED, assert_version_kind
from ebook_service.models.media_usage import MediaUsage
from ebook_service.utils.clock import utcnow
from ebook_service.utils.upsert import get_or_create_locked, lock_row

_REF_COLUMNS = {
    MANUAL: "manual_refs",
    PUBLISHED: "published_refs",
}


def lock_usage(media_key: str) -> MediaUsage | None:
    return lock_row(MediaUsage, MediaUsage.media_key, media_key)


def upsert_usage(media_key: str, *, now=None) -> MediaUsage:
    """Locked usage row for media_key, created zeroed if it does not exist yet."""
    return get_or_create_locked(
        MediaUsage,
        MediaUsage.media_key,
        media_key,
        lambda: MediaUsage(
            media_key=media_key,
            in_autosave=False,
            manual_refs=0,
            published_refs=0,
            last_seen_at=now or utcnow(),
        ),
    )


def mark_in_autosave(media_key: str, *, now=None) -> MediaUsage:
    usage = upsert_usage(media_key, now=now)
    usage.in_autosave = True
    usage.last_seen_at = now or utcnow()
    return usage


def touch(media_key: str, *, now=None) -> MediaUsage:
    usage = upsert_usage(media_key, now=now)
    usage.last_seen_at = now or utcnow()
    return usage


def clear_autosave(media_key: str, *, now=None) -> MediaUsage:
    usage = upsert_usage(media_key, now=now)
    usage.in_autosave = False
    return usage


def increment_refs(media_key: str, kind: str, *, now=None) -> MediaUsage:
    column = _REF_COLUMNS[assert_version_kind(kind)]
    usage = upsert_usage(media_key, now=now)
    setattr(usage, column, (getattr(usage, column) or 0) + 1)
    usage.last_seen_at = now or utcnow()
    return usage


def decrement_refs(media_key: str, kind: str, *, now=None) -> MediaUsage:
    """Drop one reference of the given kind, floored at zero."""
    column = _REF_COLUMNS[assert_version_kind(kind)]
    usage = upsert_usage(media_key, now=now)
    setattr(usage, column, max((getattr(usage, column) or 0) - 1, 0))
    assert_usage(usage)
    return usage


def apply_draft_diff(old_keys: Iterable[str], new_keys: Iterable[str], *, now=None) -> Dict[str, List[str]]:
    """
    Reconcile the in_autosave flags after the draft changed from content
    referencing old_keys to content referencing new_keys.

    All keys are visited in one sorted pass so usage rows are locked in
    the same global order as the version paths use.
    """
    now = now or utcnow()
    old: Set[str] = set(old_keys)
    new: Set[str] = set(new_keys)

    added, kept, removed = [], [], []
    for key in sorted(old | new):
        if key not in old:
            mark_in_autosave(key, now=now)
            added.append(key)
        elif key in new:
            touch(key, now=now)
            kept.append(key)
        else:
            clear_autosave(key, now=now)
            removed.append(key)

    return {"added": added, "kept": kept, "removed": removed}
