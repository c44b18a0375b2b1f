"""
Application error taxonomy.

Services raise these; the API layer renders them into the response envelope
with the status code carried by each class.
"""
from typing import Dict, List, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and a message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Input failed a structural or business rule. Messages are keyed by field."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Unauthorized access"

    def __init__(self, action: Optional[str] = None, message: Optional[str] = None):
        self.action = action
        super().__init__(message)


class InvalidStateError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "This leave request has already been processed"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class UnexpectedError(AppError):
    """Catch-all for store failures and bugs. `detail` is never shown in production."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)
