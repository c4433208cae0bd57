from sqlalchemy import Column, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..core.utils import generate_id
from ..registrations.models import RegistrationStatus

class ProcessDonationLog(Base):
    """Append-only trail of registration status changes."""
    __tablename__ = "process_donation_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    registration_id = Column(String(36), ForeignKey("blood_donation_registrations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_by = Column(String(36), ForeignKey("facility_staff.id", ondelete="SET NULL"), nullable=True)
    status = Column(Enum(RegistrationStatus), nullable=False, index=True)
    notes = Column(String, nullable=True)
    changed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    registration = relationship("BloodDonationRegistration")

    def __repr__(self):
        return f"<ProcessDonationLog(id={self.id}, registration_id={self.registration_id}, status={self.status})>"
