"""
Standardized error handling utilities for API endpoints.
"""
from functools import wraps
from typing import Callable, Any
from uuid import UUID
from fastapi import HTTPException, status
import logging

from leave_api.core.exceptions import AppError, UnexpectedError

logger = logging.getLogger(__name__)


def parse_uuid(uuid_string: str, entity_name: str = "ID") -> UUID:
    """
    Parse a UUID string and raise a standardized error if invalid.

    Args:
        uuid_string: String to parse as UUID
        entity_name: Name of the entity (for error message)

    Returns:
        Parsed UUID

    Raises:
        HTTPException: If UUID is invalid
    """
    try:
        return UUID(uuid_string)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {entity_name.lower()}: '{uuid_string}'. Must be a valid UUID.",
        )


def handle_endpoint_errors(
    operation_name: str = None,
    failure_message: str = None,
    log_error: bool = True,
):
    """
    Decorator to standardize error handling across all endpoints.

    Application errors and HTTPExceptions pass through untouched; anything
    else is logged and converted into an UnexpectedError.

    Args:
        operation_name: Name of the operation (for logging)
        failure_message: Message shown to the client on unexpected failures
        log_error: Whether to log errors (default: True)

    Usage:
        @handle_endpoint_errors(operation_name="create_leave", failure_message="Failed to submit leave request")
        async def create_leave_endpoint(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            op_name = operation_name or func.__name__
            try:
                return await func(*args, **kwargs)
            except (AppError, HTTPException):
                raise
            except Exception as e:
                error_detail = str(e)
                error_type = type(e).__name__

                if log_error:
                    logger.error(
                        f"Unexpected error in {op_name}",
                        exc_info=True,
                        extra={
                            "operation": op_name,
                            "error": error_detail,
                            "error_type": error_type
                        }
                    )

                raise UnexpectedError(
                    message=failure_message or f"Failed to {op_name.replace('_', ' ')}",
                    detail=f"{error_type}: {error_detail}",
                ) from e
        return wrapper
    return decorator
