"""
Global exception handlers and custom exception classes.

Every AppException is rendered as the error envelope
``{"status": "error", "code": <int>, "message": <str>}``.
"""
from typing import Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, detail: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.headers = headers


class InvalidRequestError(AppException):
    """Malformed or missing request input (e.g. no bearer token)."""
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class BadRequestError(AppException):
    """Domain validation failure: bad identifiers, wrong workflow state."""
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class UnauthorizedError(AppException):
    """Bad or expired credential with no viable refresh."""
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(AppException):
    """Role, position or ownership mismatch."""
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class NotFoundError(AppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictError(AppException):
    """The row changed underneath the current request."""
    def __init__(self, detail: str = "Resource was modified by another request"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class ConfigurationError(AppException):
    """Server-side configuration defect, such as a missing token secret."""
    def __init__(self, detail: str = "Server configuration error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


def error_body(code: int, message: str) -> dict:
    return {"status": "error", "code": code, "message": message}


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error envelope
    """
    if exc.status_code >= 500:
        logger.error(f"Application error on {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"Request rejected on {request.url.path} ({exc.status_code}): {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.detail),
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Error envelope with validation details
    """
    logger.error(f"Validation error: {exc.errors()}")
    content = error_body(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error")
    content["errors"] = jsonable_encoder(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
