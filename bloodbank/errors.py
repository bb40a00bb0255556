# bloodbank/errors.py


class BloodBankError(Exception):
    """Base class for failures reported to API callers.

    Every subclass carries a stable ``kind`` and the HTTP status it maps to.
    """
    kind = 'ServerError'
    status_code = 500
    default_message = 'An unexpected error occurred.'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        payload = {'error': self.kind, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(BloodBankError):
    kind = 'ValidationError'
    status_code = 400
    default_message = 'All fields are required'


class NotFoundError(BloodBankError):
    kind = 'NotFoundError'
    status_code = 404
    default_message = 'Request not found'


class InsufficientStockError(BloodBankError):
    kind = 'InsufficientStockError'
    status_code = 400
    default_message = 'Not enough stock available'


class RequestStateError(BloodBankError):
    """Raised when a transition is attempted from a state that forbids it."""
    kind = 'RequestStateError'
    status_code = 409
    default_message = 'Request has already been processed'


class ConcurrencyError(BloodBankError):
    kind = 'ConcurrencyError'
    status_code = 409
    default_message = 'Request was modified by another user. Please try again.'


class ForbiddenError(BloodBankError):
    kind = 'ForbiddenError'
    status_code = 403
    default_message = 'You do not have permission to perform this action'


class ServerError(BloodBankError):
    pass
