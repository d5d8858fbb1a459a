from typing import Dict, Optional

from ebook_service.utils.audit import log_action
from ebook_service.utils.ledger import lock_usage
from ebook_service.utils.pending import schedule_deletion
from ebook_service.utils.transaction import transactional

SCHEDULED = "scheduled"
SKIPPED = "skipped"


def request_media_deletion(
    *,
    media_key: str,
    actor_id: Optional[str] = None,
) -> Dict[str, str]:
    """
    Ask for a media object to be removed without waiting for the next
    autosave. Still-referenced keys are left alone; anything else enters
    the pending-deletion queue with the standard grace period.
    """
    with transactional():
        usage = lock_usage(media_key)

        if usage is not None and usage.is_live:
            status = SKIPPED
        else:
            schedule_deletion(media_key)
            status = SCHEDULED

        log_action(
            action="ebook.media.delete_request",
            entity_type="media",
            entity_id=media_key,
            actor_id=actor_id,
            payload={"status": status},
        )

    return {"status": status, "key": media_key}
