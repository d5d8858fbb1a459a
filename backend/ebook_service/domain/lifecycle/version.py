from typing import Set

from ..exceptions import ValidationError

MANUAL = "manual"
PUBLISHED = "published"

VERSION_KINDS: Set[str] = {MANUAL, PUBLISHED}

# Snapshots are immutable; the only way forward is copying a manual
# snapshot into a new published one.
ALLOWED_PUBLISH_SOURCES: Set[str] = {MANUAL}


def assert_version_kind(kind: str) -> str:
    if kind not in VERSION_KINDS:
        raise ValidationError(f"Unknown version kind: {kind!r}")
    return kind


def assert_publishable(*, source_kind: str) -> None:
    if source_kind not in ALLOWED_PUBLISH_SOURCES:
        raise ValidationError(
            f"Only manual versions can be published, got {source_kind!r}"
        )
