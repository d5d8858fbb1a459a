# ebook_service/utils/media_keys.py
from typing import Any, Callable, Set

from flask import current_app

from ebook_service.domain.exceptions import ValidationError


def _walk(node: Any, visit: Callable[[str], None]) -> None:
    """
    Visit every string value in a JSON tree.

    The editor owns the document shape, so nothing about it is assumed:
    objects and arrays are descended into wherever they appear and every
    other scalar is ignored. Object keys are never treated as values.
    """
    if isinstance(node, str):
        visit(node)
    elif isinstance(node, dict):
        for child in node.values():
            _walk(child, visit)
    elif isinstance(node, (list, tuple)):
        for child in node:
            _walk(child, visit)


def _cdn_root(cdn_base: str) -> str:
    return cdn_base.rstrip("/") + "/"


def extract_media_keys(content: Any, cdn_base: str, allowed_prefix: str) -> Set[str]:
    """
    Return the object-storage keys of every media URL embedded in content.

    A string counts when it starts with the CDN base and the remaining
    path starts with allowed_prefix. Everything else is ignored.
    """
    keys: Set[str] = set()
    if not cdn_base:
        return keys

    root = _cdn_root(cdn_base)

    def visit(value: str) -> None:
        if not value.startswith(root):
            return
        key = value[len(root):]
        if key and (not allowed_prefix or key.startswith(allowed_prefix)):
            keys.add(key)

    _walk(content, visit)
    return keys


def media_boundary():
    cfg = current_app.config
    return cfg["ASSETS_CDN_BASE_URL"], cfg["EBOOK_MEDIA_PREFIX"]


def extract_configured_keys(content: Any) -> Set[str]:
    cdn_base, allowed_prefix = media_boundary()
    return extract_media_keys(content, cdn_base, allowed_prefix)


def media_key_from_url(value: str, cdn_base: str, allowed_prefix: str) -> str:
    """
    Resolve a CDN URL or a bare storage key to a media key inside the
    allowed prefix. Anything outside that boundary is rejected.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("media_key or media_url is required")

    value = value.strip()
    root = _cdn_root(cdn_base) if cdn_base else None

    if root and value.startswith(root):
        key = value[len(root):]
    elif "://" in value:
        raise ValidationError("URL is not served by the configured CDN")
    else:
        key = value.lstrip("/")

    if not key or ".." in key.split("/"):
        raise ValidationError("Invalid media key")

    if allowed_prefix and not key.startswith(allowed_prefix):
        raise ValidationError(f"Media key must live under {allowed_prefix}")

    return key
