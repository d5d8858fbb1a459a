# Import every model so Flask-Migrate sees the full metadata.
from .draft import EbookDraft
from .version import EbookVersion
from .version_media import EbookVersionMedia
from .media_usage import MediaUsage
from .pending_deletion import PendingDeletion
from .audit_log import AuditLog

__all__ = [
    "EbookDraft",
    "EbookVersion",
    "EbookVersionMedia",
    "MediaUsage",
    "PendingDeletion",
    "AuditLog",
]
