class AttendanceError(Exception):
    """Base exception for the attendance store and API."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(AttendanceError):
    """Raised when a Student payload is missing a required field or holds an invalid value."""

    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(AttendanceError):
    """Raised when no Student exists for the given id."""

    status_code = 404


class StorageError(AttendanceError):
    """Raised when the underlying database fails."""

    status_code = 500
