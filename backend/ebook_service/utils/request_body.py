from flask import request

from ebook_service.domain.exceptions import ValidationError


def json_value():
    """The request body as any JSON value; rejects empty or malformed bodies."""
    if not request.get_data(cache=True):
        raise ValidationError("invalid JSON")
    data = request.get_json(force=True, silent=True)
    if data is None:
        raise ValidationError("invalid JSON")
    return data


def json_object(*, required: bool = False) -> dict:
    """The request body as a JSON object. An empty body is {} unless required."""
    if not request.get_data(cache=True):
        if required:
            raise ValidationError("JSON body required")
        return {}

    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data
