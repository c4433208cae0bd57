"""
User Model - Stores donors and staff accounts with their coarse role.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
import enum

from ..database import Base
from ..core.utils import generate_id

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the blood donation system.

    Roles:
    - ADMIN: System administrators with full access
    - MANAGER: Facility managers
    - DOCTOR: Physicians who decide donation eligibility
    - NURSE: Nurses who check donors in and open health checks
    - USER: Donors
    """
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    USER = "USER"

class User(Base):
    """
    User Model - Stores all user information in the system

    Fields:
    - id: UUID primary key
    - email: Unique email address for login and communication
    - full_name: User's complete name
    - password_hash: Bcrypt hash of the password
    - role: User role (admin, manager, doctor, nurse, user)
    - is_deleted: Soft-delete flag
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
