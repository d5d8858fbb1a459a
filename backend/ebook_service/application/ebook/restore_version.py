from typing import Dict, List, Optional

from ebook_service.application.ebook.save_draft import overwrite_draft
from ebook_service.application.ebook.versions import find_version, read_snapshot
from ebook_service.utils.audit import log_action
from ebook_service.utils.storage import ObjectStorage, require_storage
from ebook_service.utils.transaction import transactional


def restore_version(
    *,
    version_id: str,
    actor_id: Optional[str] = None,
    storage: Optional[ObjectStorage] = None,
) -> Dict[str, List[str]]:
    """
    Make a historical snapshot the live draft.

    This is an autosave whose content comes from the snapshot blob: the
    same overwrite and in_autosave reconciliation, nothing else. The blob
    is fetched before the draft lock is taken.
    """
    storage = require_storage(storage)

    with transactional():
        storage_key = find_version(version_id).storage_key
    content = read_snapshot(storage, storage_key)

    with transactional():
        diff = overwrite_draft(content)

        log_action(
            action="ebook.version.restore",
            entity_type="ebook_version",
            entity_id=version_id,
            actor_id=actor_id,
            payload={
                "added": diff["added"],
                "removed": diff["removed"],
            },
        )

    return diff
