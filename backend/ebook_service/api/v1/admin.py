# ebook_service/api/v1/admin.py
from flask import jsonify, request
from sqlalchemy import or_

from ebook_service.application.ebook.reindex_media import reindex_media
from ebook_service.extensions import db
from ebook_service.models.media_usage import MediaUsage
from ebook_service.models.pending_deletion import PendingDeletion
from ebook_service.models.version_media import EbookVersionMedia
from ebook_service.normalizers.media import normalize_optional, normalize_pending, normalize_usage
from ebook_service.normalizers.pagination import normalize_page, parse_limit_offset
from ebook_service.utils.decorators import current_actor_id, roles_required
from ebook_service.utils.media_keys import media_boundary, media_key_from_url
from ebook_service.utils.pending import list_pending
from . import v1_bp


@v1_bp.route("/admin/reindex", methods=["POST"])
@roles_required("admin")
def admin_reindex():
    return jsonify(reindex_media(actor_id=current_actor_id())), 200


@v1_bp.route("/admin/pending", methods=["GET"])
@roles_required("admin")
def admin_pending():
    limit, offset = parse_limit_offset(request.args, default_limit=20, max_limit=200)
    entries = list_pending(limit=limit, offset=offset)
    return jsonify(normalize_page(entries, normalize_pending, limit=limit, offset=offset)), 200


@v1_bp.route("/admin/inspect", methods=["GET"])
@roles_required("admin")
def admin_inspect():
    cdn_base, allowed_prefix = media_boundary()
    media_key = media_key_from_url(
        request.args.get("media_key") or request.args.get("media_url"),
        cdn_base,
        allowed_prefix,
    )

    usage = db.session.get(MediaUsage, media_key)
    pending = db.session.get(PendingDeletion, media_key)
    version_ids = [
        link.version_id
        for link in EbookVersionMedia.query.filter_by(media_key=media_key)
        .order_by(EbookVersionMedia.version_id.asc())
        .all()
    ]

    return jsonify({
        "media_key": media_key,
        "usage": normalize_optional(usage, normalize_usage),
        "live": usage.is_live if usage is not None else False,
        "pending": normalize_optional(pending, normalize_pending),
        "versions": version_ids,
    }), 200


@v1_bp.route("/admin/media", methods=["GET"])
@roles_required("admin")
def admin_media():
    limit, offset = parse_limit_offset(request.args, default_limit=20, max_limit=200)
    query = MediaUsage.query

    live = (request.args.get("live") or "").strip().lower()
    live_clause = or_(
        MediaUsage.in_autosave.is_(True),
        MediaUsage.manual_refs > 0,
        MediaUsage.published_refs > 0,
    )
    if live in ("1", "true", "yes"):
        query = query.filter(live_clause)
    elif live in ("0", "false", "no"):
        query = query.filter(~live_clause)

    rows = query.order_by(MediaUsage.media_key.asc()).limit(limit).offset(offset).all()
    return jsonify(normalize_page(rows, normalize_usage, limit=limit, offset=offset)), 200
