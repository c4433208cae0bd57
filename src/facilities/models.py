"""
Facility Models - Donation facilities and the staff assigned to them.

A staff record ties one user to exactly one facility with a clinical position.
Soft-deleted staff rows are ignored by every lookup.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from ..database import Base
from ..core.utils import generate_id

class StaffPosition(str, enum.Enum):
    """Position held by a staff member inside a facility."""
    MANAGER = "MANAGER"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"

class Facility(Base):
    __tablename__ = "facilities"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    staff = relationship("FacilityStaff", back_populates="facility")

    def __repr__(self):
        return f"<Facility(id={self.id}, name='{self.name}')>"

class FacilityStaff(Base):
    """
    FacilityStaff Model - Assignment of a user to a facility

    Fields:
    - id: UUID primary key (the staff_id carried in tokens)
    - user_id: Foreign key to User
    - facility_id: Foreign key to Facility
    - position: MANAGER, DOCTOR or NURSE
    - is_deleted: Soft-delete flag
    - assigned_at: When the assignment was created
    """
    __tablename__ = "facility_staff"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    facility_id = Column(String(36), ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Enum(StaffPosition), nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    facility = relationship("Facility", back_populates="staff")

    def __repr__(self):
        return f"<FacilityStaff(id={self.id}, facility_id={self.facility_id}, position={self.position})>"
