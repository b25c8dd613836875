"""
Church Site - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class ChurchSiteException(Exception):
    """Base exception for the church site"""
    def __init__(self, message: str, code: str = "CHURCHSITE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'error': True,
            'code': self.code,
            'message': self.message
        }


class RemoteStoreException(ChurchSiteException):
    """Remote document store unavailable or rejected a request"""
    def __init__(self, message: str):
        super().__init__(message, code="REMOTE_STORE_ERROR")


class LocalStoreException(ChurchSiteException):
    """Local content file missing or unreadable"""
    def __init__(self, message: str):
        super().__init__(message, code="LOCAL_STORE_ERROR")


class ValidationException(ChurchSiteException):
    """Validation-related exceptions"""
    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {message}")


def _wants_json():
    return request.path.startswith('/api/') or request.accept_mimetypes.best == 'application/json'


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        if _wants_json():
            return jsonify({
                'error': True,
                'code': e.name.upper().replace(' ', '_'),
                'message': e.description
            }), e.code
        return e

    @app.errorhandler(ValidationException)
    def handle_validation_exception(e):
        """Handle validation exceptions"""
        if _wants_json():
            return jsonify(e.to_dict()), 400
        return e.message, 400

    @app.errorhandler(ChurchSiteException)
    def handle_churchsite_exception(e):
        """Handle remaining custom exceptions"""
        logger.error(f"{e.code}: {e.message}")
        if _wants_json():
            return jsonify(e.to_dict()), 500
        return e.message, 500

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        if _wants_json():
            return jsonify({
                'error': True,
                'code': 'INTERNAL_ERROR',
                'message': 'An unexpected error occurred'
            }), 500
        return 'An unexpected error occurred', 500
