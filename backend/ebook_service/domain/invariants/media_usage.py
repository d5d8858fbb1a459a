from ..exceptions import InvariantViolation


def is_live(*, in_autosave: bool, manual_refs: int, published_refs: int) -> bool:
    """A media key is live while the draft or any surviving version references it."""
    return bool(in_autosave) or (manual_refs or 0) > 0 or (published_refs or 0) > 0


def assert_usage(usage):
    if usage.manual_refs < 0 or usage.published_refs < 0:
        raise InvariantViolation(
            f"Negative reference count for {usage.media_key}: "
            f"manual={usage.manual_refs} published={usage.published_refs}"
        )
