from flask import jsonify

from ebook_service.application.ebook.request_media_deletion import request_media_deletion
from ebook_service.utils.decorators import author_required, current_actor_id
from ebook_service.utils.media_keys import media_boundary, media_key_from_url
from ebook_service.utils.request_body import json_object
from . import v1_bp


@v1_bp.route("/media", methods=["DELETE"])
@author_required
def delete_media():
    data = json_object(required=True)
    cdn_base, allowed_prefix = media_boundary()
    media_key = media_key_from_url(
        data.get("media_key") or data.get("media_url"),
        cdn_base,
        allowed_prefix,
    )

    result = request_media_deletion(media_key=media_key, actor_id=current_actor_id())
    return jsonify(result), 200
