# ebook_service/normalizers/media.py
from typing import Any, Dict, Optional

from ebook_service.models.media_usage import MediaUsage
from ebook_service.models.pending_deletion import PendingDeletion
from ebook_service.normalizers.version import _iso


def normalize_usage(usage: MediaUsage) -> Dict[str, Any]:
    return {
        "media_key": usage.media_key,
        "in_autosave": bool(usage.in_autosave),
        "manual_refs": usage.manual_refs,
        "published_refs": usage.published_refs,
        "live": usage.is_live,
        "last_seen_at": _iso(usage.last_seen_at),
    }


def normalize_pending(entry: PendingDeletion) -> Dict[str, Any]:
    return {
        "media_key": entry.media_key,
        "requested_at": _iso(entry.requested_at),
        "not_before": _iso(entry.not_before),
        "attempts": entry.attempts,
        "last_checked_at": _iso(entry.last_checked_at),
    }


def normalize_optional(value, normalize_fn) -> Optional[Dict[str, Any]]:
    return normalize_fn(value) if value is not None else None
