"""
Authentication routes for the blood donation system.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..exceptions import ConfigurationError, UnauthorizedError
from .dependencies import get_current_identity, get_token_config
from .schemas import IdentityResponse, LoginResponse, RefreshTokenRequest, TokenPairResponse, UserLogin
from .service import Identity, RefreshFailure, RefreshFailureReason, login_user, refresh_identity

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=LoginResponse, summary="Login with email and password")
def login_route(
    credentials: UserLogin,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Authenticate a user and return an access/refresh token pair.

    Staff tokens carry the staff and facility ids used by the staff guards.
    """
    config = get_token_config(request)
    return login_user(db, credentials.email, credentials.password, config)

@router.post("/refresh-token", response_model=TokenPairResponse, summary="Exchange a refresh token")
def refresh_token_route(body: RefreshTokenRequest, request: Request):
    """
    Mint a new token pair from a refresh token.

    The new tokens carry no staff or facility claims; staff must log in again
    to reach staff-only endpoints.
    """
    result = refresh_identity(body.refresh_token, get_token_config(request))
    if isinstance(result, RefreshFailure):
        if result.reason is RefreshFailureReason.CONFIG_MISSING:
            raise ConfigurationError(result.message)
        raise UnauthorizedError(result.message)
    return TokenPairResponse(
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )

@router.get("/me", response_model=IdentityResponse, summary="Current identity")
def me_route(identity: Identity = Depends(get_current_identity)):
    """
    Return the identity resolved from the bearer token.
    """
    return IdentityResponse.model_validate(identity)
