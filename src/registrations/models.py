"""
Blood Donation Registration Model - A donor's appointment at a facility,
tracked through the donation workflow statuses.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from ..database import Base
from ..core.utils import generate_id

class RegistrationStatus(str, enum.Enum):
    """
    Workflow statuses in process order.

    The health-check workflow only moves CHECKED_IN -> IN_CONSULT and
    IN_CONSULT -> WAITING_DONATION | REGISTERED.
    """
    PENDING_APPROVAL = "PENDING_APPROVAL"
    REJECTED_REGISTRATION = "REJECTED_REGISTRATION"
    REGISTERED = "REGISTERED"
    CHECKED_IN = "CHECKED_IN"
    IN_CONSULT = "IN_CONSULT"
    REJECTED = "REJECTED"
    WAITING_DONATION = "WAITING_DONATION"
    DONATING = "DONATING"
    DONATED = "DONATED"
    RESTING = "RESTING"
    POST_REST_CHECK = "POST_REST_CHECK"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class BloodDonationRegistration(Base):
    """
    Fields:
    - id: UUID primary key
    - user_id: Donor who registered
    - facility_id: Facility hosting the donation
    - status: Current workflow status
    - preferred_date: Requested donation date
    - check_in_at: Stamped when the health check opens
    - notes: Free text
    - version: Optimistic-lock counter, bumped on every update
    """
    __tablename__ = "blood_donation_registrations"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    facility_id = Column(String(36), ForeignKey("facilities.id"), nullable=False, index=True)
    status = Column(Enum(RegistrationStatus), default=RegistrationStatus.PENDING_APPROVAL, nullable=False)
    preferred_date = Column(DateTime(timezone=True), nullable=True)
    check_in_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")
    facility = relationship("Facility")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<BloodDonationRegistration(id={self.id}, status={self.status})>"
