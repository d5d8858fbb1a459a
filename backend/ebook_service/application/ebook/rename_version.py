from typing import Optional

from ebook_service.application.ebook.versions import find_version
from ebook_service.utils.audit import log_action
from ebook_service.utils.clock import utcnow
from ebook_service.utils.optimistic_lock import enforce_optimistic_lock
from ebook_service.utils.transaction import transactional
from ebook_service.utils.versioning import normalize_label


def rename_version(
    *,
    version_id: str,
    label: Optional[str],
    actor_id: Optional[str] = None,
    unmodified_since=None,
):
    """The label is the only mutable attribute of a version."""
    label = normalize_label(label)

    with transactional():
        version = find_version(version_id, lock=True)
        enforce_optimistic_lock(version, unmodified_since)

        previous = version.label
        version.label = label
        version.updated_at = utcnow()

        log_action(
            action="ebook.version.rename",
            entity_type="ebook_version",
            entity_id=version.id,
            actor_id=actor_id,
            payload={"from": previous, "to": label},
        )

    return version
