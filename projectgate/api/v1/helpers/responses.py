"""
Standardized response helpers for consistent API responses.

The ``*_response`` error helpers return an ``HTTPException``; callers raise
it (``raise forbidden_response(...)``).
"""

from typing import Any
from fastapi import HTTPException, status
from pydantic import BaseModel


class APIResponse(BaseModel):
    """Standard API response envelope"""

    success: bool
    message: str
    data: Any | None = None
    errors: list[str] | None = None


def success_response(
    message: str = "Success",
    data: Any = None,
) -> APIResponse:
    return APIResponse(success=True, message=message, data=data)


def error_response(
    message: str = "An error occurred",
    errors: list[str] | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    response_data = APIResponse(success=False, message=message, errors=errors or [])
    return HTTPException(status_code=status_code, detail=response_data.model_dump())


def validation_error_response(
    errors: list[str], message: str = "Validation failed"
) -> HTTPException:
    return error_response(
        message=message, errors=errors, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )


def not_found_response(message: str = "Resource not found") -> HTTPException:
    return error_response(message=message, status_code=status.HTTP_404_NOT_FOUND)


def forbidden_response(
    message: str = "Access forbidden", errors: list[str] | None = None
) -> HTTPException:
    return error_response(
        message=message, errors=errors, status_code=status.HTTP_403_FORBIDDEN
    )


def unauthorized_response(message: str = "Authentication required") -> HTTPException:
    return error_response(message=message, status_code=status.HTTP_401_UNAUTHORIZED)
