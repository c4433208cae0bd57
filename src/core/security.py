"""
Password hashing used by the login flow.
"""
from passlib.context import CryptContext

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a stored hash.

    Unrecognised hash formats count as a mismatch rather than an error.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False
