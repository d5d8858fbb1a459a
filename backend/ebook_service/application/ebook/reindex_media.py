# ebook_service/application/ebook/reindex_media.py
from typing import Any, Dict, Optional

from flask import current_app

from ebook_service.application.ebook.draft_store import lock_draft
from ebook_service.application.ebook.versions import read_snapshot
from ebook_service.domain.exceptions import DependencyUnavailable
from ebook_service.extensions import db
from ebook_service.models.media_usage import MediaUsage
from ebook_service.models.version import EbookVersion
from ebook_service.models.version_media import EbookVersionMedia
from ebook_service.utils.audit import log_action
from ebook_service.utils.clock import utcnow
from ebook_service.utils.ledger import increment_refs, mark_in_autosave
from ebook_service.utils.media_keys import extract_configured_keys
from ebook_service.utils.storage import ObjectStorage, require_storage
from ebook_service.utils.transaction import transactional


def reindex_media(
    *,
    actor_id: Optional[str] = None,
    storage: Optional[ObjectStorage] = None,
) -> Dict[str, Any]:
    """
    Rebuild the usage ledger and version/media mapping from the sources.

    Responsibilities:
    - Zero every usage row (rows are kept)
    - Re-mark keys referenced by the draft
    - Re-read every snapshot and recount its references
    - Versions whose snapshot cannot be read keep their existing mapping
    """
    storage = require_storage(storage)
    now = utcnow()

    with transactional():
        versions = [
            (v.id, v.kind, v.storage_key)
            for v in EbookVersion.query.order_by(EbookVersion.created_at.asc()).all()
        ]

    # Snapshot reads happen before the rebuild transaction opens.
    contents = {}
    unreadable = []
    for version_id, _kind, storage_key in versions:
        try:
            contents[version_id] = read_snapshot(storage, storage_key)
        except DependencyUnavailable as exc:
            current_app.logger.warning("reindex: skipping version %s: %s", version_id, exc)
            unreadable.append(version_id)

    with transactional():
        draft = lock_draft()

        MediaUsage.query.update(
            {
                MediaUsage.in_autosave: False,
                MediaUsage.manual_refs: 0,
                MediaUsage.published_refs: 0,
            },
            synchronize_session=False,
        )
        db.session.expire_all()

        autosave_keys = sorted(extract_configured_keys(draft.content or {}))
        for key in autosave_keys:
            mark_in_autosave(key, now=now)

        # Versions created since the snapshot reads keep their recorded mapping.
        current = EbookVersion.query.order_by(EbookVersion.created_at.asc()).all()
        for version in current:
            version_id, kind = version.id, version.kind
            links = {
                link.media_key: link
                for link in EbookVersionMedia.query.filter_by(version_id=version_id).all()
            }

            if version_id in contents:
                keys = sorted(extract_configured_keys(contents[version_id]))
                for key, link in links.items():
                    if key not in keys:
                        db.session.delete(link)
                for key in keys:
                    if key not in links:
                        link = EbookVersionMedia()
                        link.version_id = version_id
                        link.media_key = key
                        db.session.add(link)
            else:
                keys = sorted(links)

            for key in keys:
                increment_refs(key, kind, now=now)

        summary = {
            "autosave_keys": len(autosave_keys),
            "versions": len(current),
            "unreadable_versions": unreadable,
        }

        log_action(
            action="ebook.reindex",
            entity_type="ebook",
            entity_id=draft.id,
            actor_id=actor_id,
            payload=summary,
        )

    return {"status": "reindexed", **summary}
