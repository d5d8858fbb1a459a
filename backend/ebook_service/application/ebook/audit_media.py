from datetime import timedelta
from typing import Any, Dict, Optional

from flask import current_app

from ebook_service.extensions import db
from ebook_service.models.media_usage import MediaUsage
from ebook_service.models.version import EbookVersion
from ebook_service.utils.clock import utcnow
from ebook_service.utils.storage import ObjectStorage, StorageError, require_storage

STALE_AFTER = timedelta(days=90)
STALE_SAMPLE = 1000


def audit_media(*, storage: Optional[ObjectStorage] = None, now=None) -> Dict[str, Any]:
    """
    Compare object storage against the ledger. Report only, nothing is changed.

    Findings:
    - orphan_in_storage: media object under the allowed prefix with no usage row
    - missing_in_storage: usage row not seen for 90 days whose object is gone
    - orphan_snapshot: snapshot blob no version points at (e.g. a version
      whose metadata commit failed after the upload)
    """
    storage = require_storage(storage)
    now = now or utcnow()
    cfg = current_app.config

    known_media = set(db.session.execute(db.select(MediaUsage.media_key)).scalars())
    known_snapshots = set(db.session.execute(db.select(EbookVersion.storage_key)).scalars())

    orphans = []
    checked = 0
    for key in storage.list_keys(cfg["EBOOK_MEDIA_PREFIX"], bucket=storage.media_bucket):
        checked += 1
        if key not in known_media:
            orphans.append({"kind": "orphan_in_storage", "key": key})

    missing = []
    stale = (
        MediaUsage.query
        .filter(MediaUsage.last_seen_at < now - STALE_AFTER)
        .order_by(MediaUsage.last_seen_at.asc())
        .limit(STALE_SAMPLE)
        .all()
    )
    for usage in stale:
        try:
            if not storage.exists(usage.media_key, bucket=storage.media_bucket):
                missing.append({"kind": "missing_in_storage", "key": usage.media_key})
        except StorageError as exc:
            current_app.logger.warning("audit: could not stat %s: %s", usage.media_key, exc)

    orphan_snapshots = [
        {"kind": "orphan_snapshot", "key": key}
        for key in storage.list_keys(cfg["EBOOK_VERSIONS_PREFIX"])
        if key not in known_snapshots
    ]

    current_app.logger.info(
        "audit: storage_checked=%d orphans=%d missing=%d orphan_snapshots=%d",
        checked,
        len(orphans),
        len(missing),
        len(orphan_snapshots),
    )

    return {
        "checked_storage": checked,
        "orphans": orphans,
        "missing": missing,
        "orphan_snapshots": orphan_snapshots,
    }
