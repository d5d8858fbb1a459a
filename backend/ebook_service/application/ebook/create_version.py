# ebook_service/application/ebook/create_version.py
from typing import Optional

from ebook_service.application.ebook.draft_store import lock_draft
from ebook_service.application.ebook.versions import record_version, write_snapshot
from ebook_service.domain.lifecycle.version import PUBLISHED, assert_version_kind
from ebook_service.models.version import EbookVersion
from ebook_service.utils.audit import log_action
from ebook_service.utils.clock import utcnow
from ebook_service.utils.storage import ObjectStorage, require_storage
from ebook_service.utils.transaction import transactional
from ebook_service.utils.versioning import normalize_label, snapshot_key


def create_version(
    *,
    kind: str,
    label: Optional[str] = None,
    actor_id: Optional[str] = None,
    storage: Optional[ObjectStorage] = None,
) -> EbookVersion:
    """
    Snapshot the current draft as an immutable manual or published version.

    Ordering:
    1. Read the committed draft under its row lock
    2. Write the snapshot blob (outside any transaction)
    3. Record version row, counters and media mapping in one transaction

    A failed blob write raises before step 3, so no version row ever points
    at missing content. A failure in step 3 can leave an unlinked blob
    behind, which nothing references.
    """
    kind = assert_version_kind(kind)
    label = normalize_label(label)
    storage = require_storage(storage)

    # 1️⃣ Consistent read of the draft
    with transactional():
        draft = lock_draft()
        document_id = draft.id
        content = draft.content if draft.content is not None else {}

    # 2️⃣ Durable content first
    now = utcnow()
    storage_key = snapshot_key(kind, now=now)
    write_snapshot(storage, storage_key, content)

    # 3️⃣ Metadata
    with transactional():
        version = record_version(
            document_id=document_id,
            kind=kind,
            storage_key=storage_key,
            content=content,
            label=label,
            actor_id=actor_id,
            now=now,
        )

        log_action(
            action="ebook.publish" if kind == PUBLISHED else "ebook.version.create",
            entity_type="ebook_version",
            entity_id=version.id,
            actor_id=actor_id,
            payload={
                "kind": kind,
                "storage_key": storage_key,
                "media_keys": version.media_keys,
            },
        )

    return version
