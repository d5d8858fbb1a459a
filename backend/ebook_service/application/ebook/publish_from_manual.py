from typing import Optional

from ebook_service.application.ebook.versions import (
    find_version,
    read_snapshot,
    record_version,
    write_snapshot,
)
from ebook_service.domain.lifecycle.version import PUBLISHED, assert_publishable
from ebook_service.models.version import EbookVersion
from ebook_service.utils.audit import log_action
from ebook_service.utils.clock import utcnow
from ebook_service.utils.storage import ObjectStorage, require_storage
from ebook_service.utils.transaction import transactional
from ebook_service.utils.versioning import normalize_label, snapshot_key

_UNSET = object()


def publish_from_manual(
    *,
    version_id: str,
    label=_UNSET,
    actor_id: Optional[str] = None,
    storage: Optional[ObjectStorage] = None,
) -> EbookVersion:
    """
    Publish an existing manual snapshot as a new published version.

    The source blob is copied to a fresh published path; the source
    version is only read, never changed or linked. Without an explicit
    label the source label is carried over.
    """
    storage = require_storage(storage)

    with transactional():
        source = find_version(version_id)
        assert_publishable(source_kind=source.kind)
        document_id = source.document_id
        source_key = source.storage_key
        source_label = source.label
    new_label = source_label if label is _UNSET else normalize_label(label)

    content = read_snapshot(storage, source_key)

    now = utcnow()
    storage_key = snapshot_key(PUBLISHED, now=now)
    write_snapshot(storage, storage_key, content)

    with transactional():
        version = record_version(
            document_id=document_id,
            kind=PUBLISHED,
            storage_key=storage_key,
            content=content,
            label=new_label,
            actor_id=actor_id,
            now=now,
        )

        log_action(
            action="ebook.version.publish",
            entity_type="ebook_version",
            entity_id=version.id,
            actor_id=actor_id,
            payload={
                "source_version_id": version_id,
                "storage_key": storage_key,
            },
        )

    return version
