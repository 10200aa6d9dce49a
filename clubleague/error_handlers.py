from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError
from google.api_core.exceptions import GoogleAPICallError

from .errors import AppError, DuplicateResourceError, NotFoundError, ValidationError

error_handlers_bp = Blueprint("error_handlers", __name__)


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation and precondition errors."""
    current_app.logger.warning(f"Validation Error [{error.code}]: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(
        f"Duplicate Resource Error [{error.code}]: {error.message}"
    )
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error [{error.code}]: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.warning(f"Application Error [{error.code}]: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return jsonify({"status": "error", "code": "not_found", "message": "Not found."}), 404


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return (
        jsonify(
            {
                "status": "error",
                "code": "internal_error",
                "message": "An unexpected error occurred.",
            }
        ),
        500,
    )


@error_handlers_bp.app_errorhandler(GoogleAPICallError)
def handle_db_error(e):
    """Handles Firestore errors."""
    current_app.logger.error(f"Database Error: {e}")
    # Avoid exposing raw database error details to the user
    return (
        jsonify(
            {
                "status": "error",
                "code": "storage_unavailable",
                "message": "A database error occurred. Please try again later.",
            }
        ),
        503,
    )


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """
    Handles CSRF errors, which usually indicate a session timeout or a missing
    X-CSRFToken header.
    """
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return (
        jsonify(
            {
                "status": "error",
                "code": "csrf_error",
                "message": "Your session may have expired. Please try again.",
            }
        ),
        400,
    )
