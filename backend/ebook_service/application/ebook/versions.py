# ebook_service/application/ebook/versions.py
from typing import Any, Optional, Tuple

from sqlalchemy import select

from ebook_service.application.ebook.draft_store import get_draft
from ebook_service.domain.exceptions import DependencyUnavailable, NotFound
from ebook_service.domain.lifecycle.version import assert_version_kind
from ebook_service.extensions import db
from ebook_service.models.version import EbookVersion
from ebook_service.models.version_media import EbookVersionMedia
from ebook_service.utils.clock import utcnow
from ebook_service.utils.ledger import increment_refs
from ebook_service.utils.media_keys import extract_configured_keys
from ebook_service.utils.storage import ObjectStorage, StorageError


def find_version(version_id: str, *, lock: bool = False) -> EbookVersion:
    query = select(EbookVersion).where(EbookVersion.id == version_id)
    if lock:
        query = query.with_for_update()

    version = db.session.execute(query).scalar_one_or_none()
    if version is None:
        raise NotFound(f"Version {version_id} not found")
    return version


def read_snapshot(storage: ObjectStorage, storage_key: str) -> Any:
    try:
        return storage.get_json(storage_key)
    except StorageError as exc:
        raise DependencyUnavailable(f"could not read snapshot {storage_key}: {exc}") from exc


def write_snapshot(storage: ObjectStorage, storage_key: str, content: Any) -> None:
    try:
        storage.put_json(storage_key, content)
    except StorageError as exc:
        raise DependencyUnavailable(f"could not write snapshot {storage_key}: {exc}") from exc


def record_version(
    *,
    document_id: str,
    kind: str,
    storage_key: str,
    content: Any,
    label: Optional[str],
    actor_id: Optional[str],
    now=None,
) -> EbookVersion:
    """
    Insert the version row, bump the per-kind counter of every media key
    its content references and map those keys to the version.
    Must run inside an open transaction, after the blob is durable.
    """
    now = now or utcnow()

    version = EbookVersion()
    version.document_id = document_id
    version.kind = assert_version_kind(kind)
    version.storage_key = storage_key
    version.label = label
    version.created_by = actor_id
    version.created_at = now
    version.updated_at = now

    db.session.add(version)
    db.session.flush()  # ensures version.id

    for key in sorted(extract_configured_keys(content)):
        increment_refs(key, kind, now=now)
        link = EbookVersionMedia()
        link.version_id = version.id
        link.media_key = key
        db.session.add(link)

    return version


def list_versions(*, kind: Optional[str], limit: int, offset: int) -> list[EbookVersion]:
    draft = get_draft()
    query = EbookVersion.query.filter_by(document_id=draft.id)
    if kind:
        query = query.filter_by(kind=assert_version_kind(kind))

    return (
        query.order_by(EbookVersion.created_at.desc(), EbookVersion.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def get_version_content(version_id: str, *, storage: ObjectStorage) -> Tuple[EbookVersion, Any]:
    version = find_version(version_id)
    return version, read_snapshot(storage, version.storage_key)
