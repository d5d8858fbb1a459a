import uuid
from flask import current_app
from ebook_service.domain.exceptions import ValidationError
from ebook_service.utils.clock import utcnow

MAX_LABEL_LENGTH = 200


def snapshot_key(kind: str, *, now=None) -> str:
    """
    Storage path for a new snapshot blob.

    versions/<kind>/<UTC timestamp>-<random>.json; the random suffix keeps
    two snapshots taken in the same second apart.
    """
    prefix = current_app.config["EBOOK_VERSIONS_PREFIX"]
    ts = (now or utcnow()).strftime("%Y%m%dT%H%M%SZ")
    return f"{prefix}{kind}/{ts}-{uuid.uuid4().hex[:8]}.json"


def normalize_label(label):
    if label is None:
        return None
    if not isinstance(label, str):
        raise ValidationError("label must be a string")

    label = label.strip()
    if not label:
        return None
    if len(label) > MAX_LABEL_LENGTH:
        raise ValidationError(f"label must be at most {MAX_LABEL_LENGTH} characters")
    return label
