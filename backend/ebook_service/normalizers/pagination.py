# ebook_service/normalizers/pagination.py
from typing import Any, Callable, Dict, List, Tuple


def _int_arg(raw, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def parse_limit_offset(args, *, default_limit: int, max_limit: int) -> Tuple[int, int]:
    """
    Lenient limit/offset parsing for list endpoints.

    - limit missing, non-numeric, <= 0 or above max_limit -> default_limit
    - offset missing or non-numeric -> 0, negative -> 0
    """
    limit = _int_arg(args.get("limit"), default_limit)
    if limit <= 0 or limit > max_limit:
        limit = default_limit

    offset = max(_int_arg(args.get("offset"), 0), 0)
    return limit, offset


def normalize_page(
    items: List[Any],
    normalize_fn: Callable[[Any], Dict[str, Any]],
    *,
    limit: int,
    offset: int,
    **extra: Any,
) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "items": [normalize_fn(item) for item in items],
        "limit": limit,
        "offset": offset,
    }
    response.update(extra)
    return response
