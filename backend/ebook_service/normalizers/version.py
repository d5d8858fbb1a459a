# ebook_service/normalizers/version.py
from typing import Any, Dict

from ebook_service.models.version import EbookVersion
from ebook_service.utils.clock import normalize_ts


def _iso(ts):
    ts = normalize_ts(ts)
    return ts.isoformat() if ts is not None else None


def normalize_version(version: EbookVersion) -> Dict[str, Any]:
    return {
        "id": version.id,
        "kind": version.kind,
        "label": version.label,
        "storage_key": version.storage_key,
        "created_by": version.created_by,
        "created_at": _iso(version.created_at),
        "updated_at": _iso(version.updated_at),
    }
