"""Domain errors raised by services and translated to HTTP responses in main.py."""

from typing import Optional


class VelaiError(Exception):
    """Base class for errors a caller can act on."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(VelaiError):
    """Input rejected locally, before any database or network call."""

    status_code = 422


class NotFoundError(VelaiError):
    status_code = 404


class ConflictError(VelaiError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    """Requested status change is not in the lifecycle transition table."""

    def __init__(self, message: str, current_status: Optional[str] = None, transition: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status
        self.transition = transition


class StorageError(VelaiError):
    """Object storage rejected or failed a request."""

    status_code = 502


class ExternalServiceError(VelaiError):
    """An upstream API (LLM provider) failed; message is safe to show to users."""

    status_code = 502
