from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from ebook_service.domain.exceptions import EbookError, InvariantViolation


def register_error_handlers(app):
    @app.errorhandler(EbookError)
    def handle_ebook_error(error):
        if isinstance(error, InvariantViolation):
            current_app.logger.error("Invariant violated: %s", error)

        response = jsonify({
            "error": type(error).__name__,
            "message": str(error)
        })
        response.status_code = error.status_code
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        response = jsonify({
            "error": error.name,
            "message": error.description
        })
        response.status_code = error.code
        return response
