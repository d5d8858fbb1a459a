from flask import abort
from dateutil.parser import parse, ParserError

from ebook_service.utils.clock import normalize_ts


def parse_unmodified_since(header_value):
    """
    Parse an If-Unmodified-Since header (HTTP date or ISO 8601).
    Returns None when the client did not ask for a precondition.
    """
    if not header_value:
        return None

    try:
        return normalize_ts(parse(header_value))
    except (ParserError, ValueError, OverflowError):
        abort(400, description="Invalid If-Unmodified-Since header")


def enforce_optimistic_lock(entity, client_ts):
    """
    Raises 409 Conflict if the entity has been modified after client_ts.
    HTTP dates carry whole seconds only, so the server side is truncated too.
    """
    if client_ts is None:
        return  # No optimistic lock requested

    server_ts = normalize_ts(entity.updated_at).replace(microsecond=0)

    if server_ts > client_ts:
        abort(
            409,
            description="Conflict detected. Resource has been modified."
        )
