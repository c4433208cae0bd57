"""
Authentication service layer for business logic.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from ..core.security import verify_password
from ..facilities.models import FacilityStaff
from .exceptions import InvalidCredentialsException, SigningError, TokenVerificationError
from .models import User, UserRole
from .schemas import IdentityResponse, LoginResponse
from .tokens import IdentityClaim, TokenConfig, TokenPair, create_token_pair, verify_token

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Request-scoped identity resolved from a verified token."""
    user_id: str
    email: str
    role: UserRole
    staff_id: Optional[str] = None
    facility_id: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Identity":
        return cls(
            user_id=claims["user_id"],
            email=claims["email"],
            role=UserRole(claims["role"]),
            staff_id=claims.get("staff_id"),
            facility_id=claims.get("facility_id"),
        )


class RefreshFailureReason(str, enum.Enum):
    CONFIG_MISSING = "CONFIG_MISSING"
    INVALID_TOKEN = "INVALID_TOKEN"


@dataclass(frozen=True)
class RefreshSuccess:
    identity: Identity
    tokens: TokenPair


@dataclass(frozen=True)
class RefreshFailure:
    reason: RefreshFailureReason
    message: str


RefreshResult = Union[RefreshSuccess, RefreshFailure]


def refresh_identity(refresh_token: str, config: Optional[TokenConfig]) -> RefreshResult:
    """
    Mint a new token pair from a refresh token.

    The new identity keeps only user_id, email and role. Staff and facility
    claims are dropped on purpose: a refreshed session can still reach
    role-gated endpoints, but staff-gated endpoints reject it with
    "Staff information not found" until the user logs in again.

    Expected failures are returned, never raised.

    Args:
        refresh_token: Encoded refresh token
        config: Token configuration

    Returns:
        RefreshSuccess with the reduced identity and new tokens, or
        RefreshFailure naming why the refresh was refused
    """
    if config is None or not config.refresh_secret:
        return RefreshFailure(RefreshFailureReason.CONFIG_MISSING, "Refresh token secret key not defined")

    try:
        decoded = verify_token(refresh_token, config.refresh_secret)
        claim = IdentityClaim(
            user_id=decoded["user_id"],
            email=decoded["email"],
            role=UserRole(decoded["role"]).value,
        )
    except TokenVerificationError as e:
        logger.warning(f"Refresh token rejected: {str(e)}")
        return RefreshFailure(RefreshFailureReason.INVALID_TOKEN, "Invalid or expired refresh token")
    except (KeyError, ValueError) as e:
        logger.warning(f"Refresh token carries an unusable claim: {str(e)}")
        return RefreshFailure(RefreshFailureReason.INVALID_TOKEN, "Invalid or expired refresh token")

    try:
        tokens = create_token_pair(
            claim,
            config.access_secret,
            config.refresh_secret,
            config.access_ttl,
            config.refresh_ttl,
        )
    except SigningError as e:
        logger.error(f"Could not sign refreshed tokens: {str(e)}")
        return RefreshFailure(RefreshFailureReason.CONFIG_MISSING, "Access token secret key not defined")

    logger.info(f"Issued refreshed token pair for user {claim.user_id}")
    return RefreshSuccess(identity=Identity.from_claims(claim.to_payload()), tokens=tokens)


def login_user(db: Session, email: str, password: str, config: TokenConfig) -> LoginResponse:
    """
    Authenticate a user and issue a token pair.

    Staff members get their staff_id and facility_id embedded in the claim.

    Args:
        db: Database session
        email: User's email address
        password: User's plain text password
        config: Token configuration

    Returns:
        LoginResponse: Tokens plus the identity they carry

    Raises:
        InvalidCredentialsException: If the email is unknown or the password is wrong
    """
    logger.info(f"Login attempt for email: {email}")
    user = db.query(User).filter(User.email == email, User.is_deleted.is_(False)).first()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Login failed for email: {email}")
        raise InvalidCredentialsException()

    staff = db.query(FacilityStaff).filter(
        FacilityStaff.user_id == user.id,
        FacilityStaff.is_deleted.is_(False),
    ).first()

    claim = IdentityClaim(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        staff_id=staff.id if staff else None,
        facility_id=staff.facility_id if staff else None,
    )
    tokens = create_token_pair(
        claim,
        config.access_secret,
        config.refresh_secret,
        config.access_ttl,
        config.refresh_ttl,
    )
    logger.info(f"User {user.id} logged in")

    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=IdentityResponse(**claim.to_payload()),
        full_name=user.full_name,
    )
