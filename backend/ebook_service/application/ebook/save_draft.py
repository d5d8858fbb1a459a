from typing import Any, Dict, List, Optional

from sqlalchemy.orm.attributes import flag_modified

from ebook_service.application.ebook.draft_store import lock_draft
from ebook_service.utils.audit import log_action
from ebook_service.utils.clock import utcnow
from ebook_service.utils.ledger import apply_draft_diff
from ebook_service.utils.media_keys import extract_configured_keys
from ebook_service.utils.transaction import transactional


def overwrite_draft(new_content: Any, *, now=None) -> Dict[str, List[str]]:
    """
    Replace the draft content and reconcile the autosave flags against
    the content it replaces.

    Must run inside an open transaction; the row lock taken here is what
    serializes concurrent writers of the slot.
    """
    now = now or utcnow()
    draft = lock_draft()

    old_keys = extract_configured_keys(draft.content or {})
    new_keys = extract_configured_keys(new_content)

    draft.content = new_content
    draft.updated_at = now
    flag_modified(draft, "content")

    diff = apply_draft_diff(old_keys, new_keys, now=now)
    diff["document_id"] = draft.id
    return diff


def save_draft(
    content: Any,
    *,
    actor_id: Optional[str] = None,
) -> Dict[str, List[str]]:
    """
    Autosave the live document.

    Responsibilities:
    - Lock and overwrite the draft row
    - Mark keys that appeared as in_autosave, clear the ones that left
    - Audit logging
    """
    with transactional():
        diff = overwrite_draft(content)

        log_action(
            action="ebook.autosave",
            entity_type="ebook",
            entity_id=diff["document_id"],
            actor_id=actor_id,
            payload={
                "added": diff["added"],
                "removed": diff["removed"],
            },
        )

    return diff
