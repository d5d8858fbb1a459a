from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

AUTHOR_ROLES = ("author", "admin")


def roles_required(*allowed_roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            claims = get_jwt()

            if claims.get("role") not in allowed_roles:
                return jsonify({"error": "Insufficient permissions"}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def author_required(fn):
    return roles_required(*AUTHOR_ROLES)(fn)


def current_actor_id():
    identity = get_jwt_identity()
    return str(identity) if identity is not None else None
