from flask import jsonify

from ebook_service.utils.storage import get_storage
from . import v1_bp


@v1_bp.route("/health", methods=["GET"])
def health_check():
    return jsonify({
        "status": "ok",
        "service": "ebook-service",
        "storage": "configured" if get_storage().enabled else "disabled",
    })
