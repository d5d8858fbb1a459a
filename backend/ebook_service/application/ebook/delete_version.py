# ebook_service/application/ebook/delete_version.py
from typing import List, Optional

from flask import current_app

from ebook_service.application.ebook.versions import find_version
from ebook_service.extensions import db
from ebook_service.models.version_media import EbookVersionMedia
from ebook_service.utils.audit import log_action
from ebook_service.utils.clock import utcnow
from ebook_service.utils.ledger import decrement_refs
from ebook_service.utils.pending import schedule_if_unreferenced
from ebook_service.utils.storage import ObjectStorage, StorageError, get_storage
from ebook_service.utils.transaction import transactional


def delete_version(
    *,
    version_id: str,
    actor_id: Optional[str] = None,
    storage: Optional[ObjectStorage] = None,
) -> List[str]:
    """
    Delete a version and release its media references.

    Responsibilities:
    - Decrement the per-kind counter of every mapped media key
    - Remove mapping rows, then the version row
    - Schedule deletion for keys that are no longer live
    - Best-effort removal of the snapshot blob after commit

    Returns the media keys scheduled for deletion.
    """
    now = utcnow()

    with transactional():
        version = find_version(version_id, lock=True)
        kind = version.kind
        storage_key = version.storage_key

        keys = [
            row.media_key
            for row in EbookVersionMedia.query.filter_by(version_id=version.id).all()
        ]

        for key in sorted(keys):
            decrement_refs(key, kind, now=now)

        db.session.delete(version)  # mapping rows go with it (delete-orphan)
        db.session.flush()

        scheduled = schedule_if_unreferenced(keys, now=now)

        log_action(
            action="ebook.version.delete",
            entity_type="ebook_version",
            entity_id=version_id,
            actor_id=actor_id,
            payload={
                "kind": kind,
                "storage_key": storage_key,
                "scheduled": scheduled,
            },
        )

    # Metadata is committed; the blob is reconciled best-effort.
    storage = storage or get_storage()
    if not storage.enabled:
        current_app.logger.warning(
            "Storage not configured; snapshot blob %s left in place", storage_key
        )
        return scheduled

    try:
        storage.delete(storage_key)
    except StorageError as exc:
        current_app.logger.error(
            "Failed to delete snapshot blob %s for version %s: %s",
            storage_key,
            version_id,
            exc,
        )

    return scheduled
