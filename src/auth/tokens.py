"""
JWT token pair creation and verification.

Access and refresh tokens are signed independently with HS256 over the same
identity claim; each carries its own expiry. There is no server-side
revocation, validity is signature plus ``exp``.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, ExpiredSignatureError, JOSEError

from ..exceptions import ConfigurationError
from .exceptions import SigningError, TokenVerificationError, VerificationFailure

ALGORITHM = "HS256"


@dataclass(frozen=True)
class IdentityClaim:
    """Identity payload embedded in every token."""
    user_id: str
    email: str
    role: str
    staff_id: Optional[str] = None
    facility_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        role = getattr(self.role, "value", self.role)
        payload = {"user_id": self.user_id, "email": self.email, "role": role}
        if self.staff_id:
            payload["staff_id"] = self.staff_id
        if self.facility_id:
            payload["facility_id"] = self.facility_id
        return payload


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenConfig:
    """
    Token secrets and lifetimes, built once at startup.

    Attributes:
        access_secret: HMAC secret for access tokens
        refresh_secret: HMAC secret for refresh tokens
        access_ttl: Access token lifetime
        refresh_ttl: Refresh token lifetime
    """
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta

    @classmethod
    def from_settings(cls, settings) -> "TokenConfig":
        """
        Build the token configuration from application settings.

        Raises:
            ConfigurationError: If either secret signature is not defined
        """
        missing = [
            name
            for name, value in (
                ("ACCESS_TOKEN_SECRET_SIGNATURE", settings.access_token_secret_signature),
                ("REFRESH_TOKEN_SECRET_SIGNATURE", settings.refresh_token_secret_signature),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Token secret signature not defined: {', '.join(missing)}")

        return cls(
            access_secret=settings.access_token_secret_signature,
            refresh_secret=settings.refresh_token_secret_signature,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
        )


def _sign(payload: Dict[str, Any], secret: str, ttl: timedelta) -> str:
    if not secret or not isinstance(secret, str):
        raise SigningError("Token secret signature is missing or invalid")
    to_encode = payload.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + ttl
    try:
        return jwt.encode(to_encode, secret, algorithm=ALGORITHM)
    except JOSEError as e:
        raise SigningError(f"Failed to sign token: {str(e)}") from e


def create_token_pair(
    claim: IdentityClaim,
    access_secret: str,
    refresh_secret: str,
    access_ttl: timedelta,
    refresh_ttl: timedelta,
) -> TokenPair:
    """
    Sign an access token and a refresh token over the same claim.

    Args:
        claim: Identity to embed
        access_secret: Secret for the access token
        refresh_secret: Secret for the refresh token
        access_ttl: Access token lifetime
        refresh_ttl: Refresh token lifetime

    Returns:
        TokenPair: The two encoded tokens

    Raises:
        SigningError: If a secret is missing or signing fails
    """
    payload = claim.to_payload()
    return TokenPair(
        access_token=_sign(payload, access_secret, access_ttl),
        refresh_token=_sign(payload, refresh_secret, refresh_ttl),
    )


def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Verify and decode a token.

    Args:
        token: Encoded JWT
        secret: Secret it must be signed with

    Returns:
        Dict containing the decoded claims

    Raises:
        TokenVerificationError: kind EXPIRED for an expired token, INVALID otherwise
    """
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenVerificationError(VerificationFailure.EXPIRED, "Token has expired") from e
    except JOSEError as e:
        raise TokenVerificationError(VerificationFailure.INVALID, f"Token verification failed: {str(e)}") from e
