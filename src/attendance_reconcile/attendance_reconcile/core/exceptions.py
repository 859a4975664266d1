class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class BatchConflictError(ValidationError):
    """Raised when a staging batch is opened while another one still holds rows."""


class InvalidTransitionError(ValidationError):
    """Raised when an approval status change leaves a terminal state."""


class NetworkError(DomainError):
    """Raised when a call to the attendance/staging backend fails."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CsvImportError(ValidationError):
    """Raised when an uploaded CSV cannot be turned into staged rows."""
