"""
Health Check Model - Clinical screening record for one check-in episode.

Opened by a nurse against a CHECKED_IN registration and completed by the
doctor assigned to it.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from ..core.utils import generate_id

class HealthCheck(Base):
    """
    Fields:
    - registration_id: Registration this check belongs to
    - user_id: Donor being screened
    - staff_id: Nurse who opened the check
    - doctor_id: Doctor assigned to complete it
    - facility_id: Facility of the nurse (and doctor)
    - check_date: Copied from registration.check_in_at
    - is_eligible: None until the doctor decides, then True/False
    - blood_pressure, hemoglobin, weight, pulse, temperature, general_condition: Vitals
    - deferral_reason: Required when is_eligible is False
    - notes: Free text
    """
    __tablename__ = "health_checks"

    id = Column(String(36), primary_key=True, default=generate_id)
    registration_id = Column(String(36), ForeignKey("blood_donation_registrations.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    staff_id = Column(String(36), ForeignKey("facility_staff.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("facility_staff.id"), nullable=False, index=True)
    facility_id = Column(String(36), ForeignKey("facilities.id"), nullable=False, index=True)
    check_date = Column(DateTime(timezone=True), nullable=True)
    is_eligible = Column(Boolean, nullable=True)
    blood_pressure = Column(String, nullable=True)
    hemoglobin = Column(Float, nullable=True)
    weight = Column(Float, nullable=True)
    pulse = Column(Integer, nullable=True)
    temperature = Column(Float, nullable=True)
    general_condition = Column(String, nullable=True)
    deferral_reason = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    registration = relationship("BloodDonationRegistration")
    user = relationship("User")
    staff = relationship("FacilityStaff", foreign_keys=[staff_id])
    doctor = relationship("FacilityStaff", foreign_keys=[doctor_id])
    facility = relationship("Facility")

    def __repr__(self):
        return f"<HealthCheck(id={self.id}, registration_id={self.registration_id}, is_eligible={self.is_eligible})>"
