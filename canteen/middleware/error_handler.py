import traceback
import logging
from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from marshmallow import ValidationError as SchemaValidationError
from flask_jwt_extended.exceptions import JWTExtendedException
from datetime import datetime, timezone

from canteen.errors import CanteenError
from .utils import get_request_summary

logger = logging.getLogger(__name__)


def error_response(status_code, error_type, message, **extra):
    """Build the standard JSON error body."""
    error = {
        'type': error_type,
        'message': message,
        'status_code': status_code,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'path': request.path,
        'method': request.method,
    }
    error.update({key: value for key, value in extra.items() if value is not None})
    return jsonify({'success': False, 'message': message, 'error': error}), status_code


class ErrorHandlerMiddleware:
    """Global error handler middleware for consistent error responses"""

    def __init__(self, app):
        self.app = app
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register all error handlers"""

        @self.app.errorhandler(CanteenError)
        def handle_domain_error(e):
            """Handle errors raised by the service layer"""
            return self._respond(e, e.status_code, e.error_type, e.message,
                                 details=e.details or None)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(e):
            """Handle HTTP exceptions, including request parsing failures"""
            validation_errors = None
            status_code = e.code or 500
            error_type = e.name
            message = e.description if isinstance(e.description, str) else str(e.description)

            # flask-smorest aborts with 422 when a schema rejects the body
            data = getattr(e, 'data', None) or {}
            if status_code == 422 and 'messages' in data:
                status_code = 400
                error_type = "Validation Error"
                message = "Invalid request data."
                validation_errors = data['messages']
            elif isinstance(data, dict) and data.get('message'):
                message = data['message']

            return self._respond(e, status_code, error_type, message,
                                 validation_errors=validation_errors)

        @self.app.errorhandler(SchemaValidationError)
        def handle_validation_error(e):
            """Handle validation errors from marshmallow"""
            return self._respond(e, 400, "Validation Error", "Invalid request data.",
                                 validation_errors=e.messages)

        @self.app.errorhandler(JWTExtendedException)
        def handle_jwt_error(e):
            """Handle JWT-related errors"""
            return self._respond(e, 401, "Authentication Error", str(e))

        @self.app.errorhandler(SQLAlchemyError)
        def handle_sqlalchemy_error(e):
            """Handle database-related errors"""
            from canteen import db
            db.session.rollback()
            return self._respond(e, 500, "Database Error", self._server_message(e))

        @self.app.errorhandler(Exception)
        def handle_generic_exception(e):
            """Handle all unhandled exceptions"""
            return self._respond(e, 500, "Internal Server Error", self._server_message(e))

    def _server_message(self, exception):
        if current_app.config.get('DEBUG', False):
            return str(exception)
        return "An unexpected error occurred"

    def _respond(self, exception, status_code, error_type, message, **extra):
        """Log the error and build the response"""
        log_extra = {
            'event': 'request_error',
            'exception': f"{type(exception).__name__}: {exception}",
            'request_data': get_request_summary(),
        }

        if status_code >= 500:
            log_extra['traceback'] = traceback.format_exc()
            logger.error(f"Server Error: {error_type} - {exception}", extra=log_extra)
        else:
            logger.warning(f"Client Error: {error_type} - {message}", extra=log_extra)

        # Non-production builds include the traceback
        if status_code >= 500 and current_app.config.get('DEBUG', False):
            extra['traceback'] = traceback.format_exc()

        return error_response(status_code, error_type, message, **extra)


def init_error_handler(app):
    """Initialize error handler middleware"""
    return ErrorHandlerMiddleware(app)
