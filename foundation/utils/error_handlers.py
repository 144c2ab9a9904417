"""
Error Handlers

FLOW OVERVIEW
- FoundationError subclasses → their status with `{"error", "field"?, "detail"?}`.
- IntegrityError → 409 for unique violations (field guessed from the message:
  email or username), 400 for other constraint failures. Session rolled back.
- DataError → 400; "value too long" reports field 'general'.
- HTTP errors (404, 405, ...) → JSON with the HTTP status.
- Anything else → 500 after rolling back the session.
"""

import logging

from flask import jsonify
from sqlalchemy.exc import DataError, IntegrityError
from werkzeug.exceptions import HTTPException

from .errors import FoundationError

logger = logging.getLogger(__name__)

HTTP_MESSAGES = {
    404: 'Resource not found',
    405: 'Method not allowed',
}


def _rollback():
    from ..models import db
    db.session.rollback()


def integrity_error_payload(error):
    """Translate a database integrity error into (payload, status)."""
    message = str(getattr(error, 'orig', error)).lower()
    if 'unique' not in message and 'duplicate' not in message:
        return {'error': 'Invalid data: a database constraint was violated'}, 400
    if 'email' in message:
        return {'error': 'Email already registered', 'field': 'email'}, 409
    if 'username' in message:
        return {'error': 'Username already taken', 'field': 'username'}, 409
    return {'error': 'A record with this value already exists'}, 409


def register_error_handlers(app):
    """Register error handlers with the Flask app"""

    @app.errorhandler(FoundationError)
    def foundation_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(IntegrityError)
    def integrity_error(error):
        _rollback()
        payload, status = integrity_error_payload(error)
        logger.warning("Integrity error mapped to %s: %s", status, error.orig)
        return jsonify(payload), status

    @app.errorhandler(DataError)
    def data_error(error):
        _rollback()
        if 'too long' in str(error.orig).lower():
            return jsonify({'error': 'Value too long for database field', 'field': 'general'}), 400
        return jsonify({'error': 'Invalid data format'}), 400

    @app.errorhandler(HTTPException)
    def http_error(error):
        message = HTTP_MESSAGES.get(error.code, error.description)
        return jsonify({'error': message}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        _rollback()
        logger.exception("Unhandled error: %s", error)
        return jsonify({'error': 'Internal server error'}), 500
