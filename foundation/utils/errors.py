"""
Domain Errors

FLOW OVERVIEW
- Models and routes raise FoundationError subclasses; error_handlers turns them
  into `{"error": message}` JSON bodies with the matching status code.
- `field` names the offending input (e.g. 'email', 'username') for 409/400s.
- `detail` carries optional structured context (e.g. per-field messages).
"""


class FoundationError(Exception):
    """Base error with an HTTP status"""

    status_code = 500

    def __init__(self, message, status_code=None, field=None, detail=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.field = field
        self.detail = detail

    def to_dict(self):
        payload = {'error': self.message}
        if self.field:
            payload['field'] = self.field
        if self.detail is not None:
            payload['detail'] = self.detail
        return payload


class ValidationError(FoundationError):
    status_code = 400


class AuthenticationError(FoundationError):
    status_code = 401


class PermissionDeniedError(FoundationError):
    status_code = 403


class NotFoundError(FoundationError):
    status_code = 404


class ConflictError(FoundationError):
    status_code = 409


class MailDeliveryError(FoundationError):
    status_code = 502
