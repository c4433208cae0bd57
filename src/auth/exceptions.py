"""
Authentication-specific exceptions.
"""
import enum
from typing import Iterable

from ..exceptions import ForbiddenError, UnauthorizedError

class SigningError(Exception):
    """Raised when a token cannot be signed (missing or unusable secret)."""

class VerificationFailure(str, enum.Enum):
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"

class TokenVerificationError(Exception):
    """
    Raised when a token fails verification.

    ``kind`` tells an expired token apart from every other failure
    (bad signature, malformed token, wrong algorithm).
    """
    def __init__(self, kind: VerificationFailure, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def expired(self) -> bool:
        return self.kind is VerificationFailure.EXPIRED

class InvalidCredentialsException(UnauthorizedError):
    """Exception raised when credentials are invalid."""
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail=detail)

class RoleDeniedException(ForbiddenError):
    """Exception raised when user doesn't have required role."""
    def __init__(self, required_roles: Iterable, user_role: str):
        required = ", ".join(role.value for role in required_roles)
        detail = f"User does not have permission. Required roles: {required}. Your role: {user_role}"
        super().__init__(detail=detail)

class PositionDeniedException(ForbiddenError):
    """Exception raised when a staff member doesn't hold a required position."""
    def __init__(self, required_positions: Iterable, position: str):
        required = ", ".join(position.value for position in required_positions)
        detail = f"Staff does not have required position. Required positions: {required}. Your position: {position}"
        super().__init__(detail=detail)
