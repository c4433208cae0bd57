"""
FastAPI dependencies for authentication and authorization.

Chain: get_current_identity (bearer token, transparent refresh) ->
require_roles (coarse role) -> require_staff (facility position).
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import AppException, ConfigurationError, ForbiddenError, InvalidRequestError, UnauthorizedError
from ..facilities.models import FacilityStaff, StaffPosition
from .exceptions import PositionDeniedException, RoleDeniedException, TokenVerificationError
from .models import UserRole
from .service import Identity, RefreshFailure, RefreshFailureReason, refresh_identity
from .tokens import TokenConfig, TokenPair, verify_token

# Set up logging
logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "authorization"
REFRESH_TOKEN_HEADER = "x-refresh-token"
ACCESS_TOKEN_RESPONSE_HEADER = "x-access-token"
REFRESH_TOKEN_RESPONSE_HEADER = "x-refresh-token"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthOutcome:
    identity: Identity
    refreshed_tokens: Optional[TokenPair] = None


def get_token_config(request: Request) -> TokenConfig:
    """
    Token configuration stored on the app at startup.

    Raises:
        ConfigurationError: If the app was started without one
    """
    config = getattr(request.app.state, "token_config", None)
    if config is None:
        raise ConfigurationError("Access token secret key not defined")
    return config


def authenticate(access_token: str, refresh_token: Optional[str], config: TokenConfig) -> AuthOutcome:
    """
    Resolve an identity from an access token, refreshing when it has expired.

    Args:
        access_token: Bearer token from the Authorization header
        refresh_token: Optional refresh token header value
        config: Token configuration

    Returns:
        AuthOutcome: The identity, plus new tokens if a refresh happened

    Raises:
        UnauthorizedError: Bad signature, or expired without a usable refresh token
        ConfigurationError: Refresh impossible because a secret is missing
    """
    try:
        claims = verify_token(access_token, config.access_secret)
    except TokenVerificationError as e:
        if not (e.expired and refresh_token):
            raise UnauthorizedError("Invalid or expired access token")

        result = refresh_identity(refresh_token, config)
        if isinstance(result, RefreshFailure):
            if result.reason is RefreshFailureReason.CONFIG_MISSING:
                raise ConfigurationError(result.message)
            raise UnauthorizedError(result.message)
        return AuthOutcome(identity=result.identity, refreshed_tokens=result.tokens)

    return AuthOutcome(identity=Identity.from_claims(claims))


async def get_current_identity(request: Request, response: Response) -> Identity:
    """
    Resolve the caller's identity and attach it to ``request.state.user``.

    Silent refreshes hand the new tokens back in the ``x-access-token`` and
    ``x-refresh-token`` response headers, also when a later guard or the
    endpoint fails (see ``request.state.refreshed_tokens``).

    Raises:
        InvalidRequestError: Missing or non-bearer Authorization header
        ConfigurationError: Token configuration missing
        UnauthorizedError: Any verification failure or unexpected error
    """
    try:
        auth_header = request.headers.get(AUTHORIZATION_HEADER)
        if not auth_header or not auth_header.startswith(BEARER_PREFIX):
            raise InvalidRequestError("No access token provided or invalid format")
        access_token = auth_header[len(BEARER_PREFIX):].strip()
        refresh_token = request.headers.get(REFRESH_TOKEN_HEADER)

        config = get_token_config(request)
        outcome = authenticate(access_token, refresh_token, config)
    except AppException:
        raise
    except Exception as e:
        logger.error(f"Authentication error: {str(e)}")
        raise UnauthorizedError(f"Authentication failed: {str(e)}")

    if outcome.refreshed_tokens is not None:
        response.headers[ACCESS_TOKEN_RESPONSE_HEADER] = outcome.refreshed_tokens.access_token
        response.headers[REFRESH_TOKEN_RESPONSE_HEADER] = outcome.refreshed_tokens.refresh_token
        # Error responses built later in the request get them from RequestLoggingMiddleware
        request.state.refreshed_tokens = outcome.refreshed_tokens
        logger.info(f"Access token refreshed for user {outcome.identity.user_id}")

    request.state.user = outcome.identity
    return outcome.identity


def check_role(identity: Optional[Identity], allowed_roles: Iterable[UserRole]) -> Identity:
    """
    Pass the identity through if its role is allowed.

    Raises:
        ForbiddenError: Identity or role missing
        RoleDeniedException: Role not in the allow-list
    """
    allowed = list(allowed_roles)
    if identity is None or identity.role is None:
        raise ForbiddenError("User information or role not found")
    if identity.role not in allowed:
        raise RoleDeniedException(allowed, identity.role.value)
    return identity


def check_staff(db: Session, identity: Optional[Identity], allowed_positions: Iterable[StaffPosition]) -> FacilityStaff:
    """
    Load the caller's staff record within their facility and check its position.

    Fails closed: a lookup error becomes Forbidden, never a 500.

    Args:
        db: Database session
        identity: Resolved identity
        allowed_positions: Positions that may pass

    Returns:
        FacilityStaff: The caller's staff record

    Raises:
        ForbiddenError: Missing claims, unknown/unassigned staff, lookup failure
        PositionDeniedException: Position not in the allow-list
    """
    allowed = list(allowed_positions)
    if identity is None or not identity.staff_id or not identity.facility_id:
        raise ForbiddenError("Staff information not found")

    try:
        staff = db.query(FacilityStaff).filter(
            FacilityStaff.id == identity.staff_id,
            FacilityStaff.facility_id == identity.facility_id,
            FacilityStaff.is_deleted.is_(False),
        ).first()
    except Exception as e:
        logger.error(f"Staff lookup failed for {identity.staff_id}: {str(e)}")
        raise ForbiddenError(str(e) or "Staff verification failed")

    if not staff:
        raise ForbiddenError("Staff not found or not assigned to this facility")
    if staff.position not in allowed:
        raise PositionDeniedException(allowed, staff.position.value)
    return staff


def require_roles(allowed_roles: List[UserRole]):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: List of roles that are allowed access

    Returns:
        Function that checks if the identity has a required role
    """
    def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        return check_role(identity, allowed_roles)
    return role_checker


def require_staff(allowed_positions: List[StaffPosition]):
    """
    Dependency factory to require a facility staff position.

    The staff record is also stored on ``request.state.staff``.
    """
    def staff_checker(
        request: Request,
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> FacilityStaff:
        staff = check_staff(db, identity, allowed_positions)
        request.state.staff = staff
        return staff
    return staff_checker


# Convenience dependencies for the health-check routes
require_nurse = require_roles([UserRole.NURSE])
require_doctor = require_roles([UserRole.DOCTOR])
require_donor = require_roles([UserRole.USER])
require_nurse_staff = require_staff([StaffPosition.NURSE])
require_doctor_staff = require_staff([StaffPosition.DOCTOR])
require_any_staff = require_staff([StaffPosition.MANAGER, StaffPosition.DOCTOR, StaffPosition.NURSE])
