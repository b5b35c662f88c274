"""
src/exceptions.py — error taxonomy shared by collections and backends.

Permission failures use the builtin PermissionError.
"""


class BackofficeError(Exception):

    default_message = "Operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(BackofficeError, ValueError):

    default_message = "Validation failed"


class ConflictError(BackofficeError):

    default_message = "Resource conflict"


class NotFoundError(BackofficeError, LookupError):

    default_message = "Resource not found"


class TransportError(BackofficeError):

    default_message = "Request to the data service failed"
