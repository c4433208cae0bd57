"""
Identifier helpers shared by the models and services.
"""
import uuid
from typing import Any


def generate_id() -> str:
    """Primary key factory: random UUID4 rendered as a 36-char string."""
    return str(uuid.uuid4())


def is_valid_id(value: Any) -> bool:
    """
    Check whether a value is a well-formed record identifier.

    Args:
        value: Candidate identifier, usually taken straight from a request

    Returns:
        bool: True if the value parses as a UUID
    """
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
