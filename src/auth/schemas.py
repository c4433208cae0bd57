"""
Auth Schemas - Pydantic models for login, token refresh and identity payloads.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr

from .models import UserRole

class UserLogin(BaseModel):
    """
    User Login Schema - Used for authentication

    Fields:
    - email: User's email address
    - password: User's plain text password
    """
    email: EmailStr
    password: str

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class IdentityResponse(BaseModel):
    """
    Identity resolved by the auth dependency.

    staff_id and facility_id are None for donors and for identities
    recovered through a token refresh.
    """
    user_id: str
    email: str
    role: UserRole
    staff_id: Optional[str] = None
    facility_id: Optional[str] = None

    class Config:
        from_attributes = True

class LoginResponse(TokenPairResponse):
    user: IdentityResponse
    full_name: str
