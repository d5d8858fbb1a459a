# ebook_service/api/v1/document.py
from flask import current_app, jsonify, request

from ebook_service.application.ebook.create_version import create_version
from ebook_service.application.ebook.delete_version import delete_version
from ebook_service.application.ebook.draft_store import get_draft_content
from ebook_service.application.ebook.publish_from_manual import publish_from_manual
from ebook_service.application.ebook.rename_version import rename_version
from ebook_service.application.ebook.restore_version import restore_version
from ebook_service.application.ebook.save_draft import save_draft
from ebook_service.application.ebook.versions import get_version_content, list_versions
from ebook_service.domain.exceptions import ValidationError
from ebook_service.domain.lifecycle.version import MANUAL, PUBLISHED
from ebook_service.normalizers.pagination import normalize_page, parse_limit_offset
from ebook_service.normalizers.version import normalize_version
from ebook_service.utils.decorators import author_required, current_actor_id
from ebook_service.utils.optimistic_lock import parse_unmodified_since
from ebook_service.utils.request_body import json_object, json_value
from ebook_service.utils.storage import require_storage
from . import v1_bp

DEFAULT_VERSIONS_LIMIT = 10


# ------------------------
# Draft
# ------------------------

@v1_bp.route("/document", methods=["GET"])
@author_required
def get_document():
    return jsonify({"content": get_draft_content()}), 200


@v1_bp.route("/document", methods=["PUT"])
@author_required
def put_document():
    content = json_value()
    save_draft(content, actor_id=current_actor_id())
    return jsonify({"status": "saved"}), 200


# ------------------------
# Versions
# ------------------------

@v1_bp.route("/document/versions", methods=["POST"])
@author_required
def create_manual_version():
    data = json_object()
    version = create_version(
        kind=MANUAL,
        label=data.get("label"),
        actor_id=current_actor_id(),
    )
    return jsonify({"status": "manual_version_created", "id": version.id}), 200


@v1_bp.route("/document/publish", methods=["POST"])
@author_required
def publish_document():
    data = json_object()
    version = create_version(
        kind=PUBLISHED,
        label=data.get("label"),
        actor_id=current_actor_id(),
    )
    return jsonify({"status": "published", "id": version.id}), 200


@v1_bp.route("/document/versions/<version_id>/publish", methods=["POST"])
@author_required
def publish_version(version_id):
    data = json_object()
    kwargs = {"label": data["label"]} if "label" in data else {}
    version = publish_from_manual(
        version_id=version_id,
        actor_id=current_actor_id(),
        **kwargs,
    )
    return jsonify({"status": "published", "id": version.id}), 200


@v1_bp.route("/document/versions", methods=["GET"])
@author_required
def get_versions():
    kind = request.args.get("kind") or None
    limit, offset = parse_limit_offset(
        request.args,
        default_limit=DEFAULT_VERSIONS_LIMIT,
        max_limit=current_app.config["VERSIONS_PAGE_MAX"],
    )

    versions = list_versions(kind=kind, limit=limit, offset=offset)
    return jsonify(
        normalize_page(versions, normalize_version, limit=limit, offset=offset, kind=kind)
    ), 200


@v1_bp.route("/document/versions/<version_id>/content", methods=["GET"])
@author_required
def get_version_snapshot(version_id):
    version, content = get_version_content(version_id, storage=require_storage())
    return jsonify({"id": version.id, "content": content}), 200


@v1_bp.route("/document/versions/<version_id>/restore", methods=["POST"])
@author_required
def restore_document_version(version_id):
    restore_version(version_id=version_id, actor_id=current_actor_id())
    return jsonify({"status": "restored"}), 200


@v1_bp.route("/document/versions/<version_id>", methods=["DELETE"])
@author_required
def delete_document_version(version_id):
    scheduled = delete_version(version_id=version_id, actor_id=current_actor_id())
    return jsonify({"status": "deleted", "scheduled": scheduled}), 200


@v1_bp.route("/document/versions/<version_id>", methods=["PATCH"])
@author_required
def rename_document_version(version_id):
    data = json_object(required=True)
    if "label" not in data:
        raise ValidationError("label is required")

    version = rename_version(
        version_id=version_id,
        label=data["label"],
        actor_id=current_actor_id(),
        unmodified_since=parse_unmodified_since(request.headers.get("If-Unmodified-Since")),
    )
    return jsonify({"status": "renamed", "version": normalize_version(version)}), 200
