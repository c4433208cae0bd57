"""
Health Check Schemas - Pydantic models for health-check requests and the
projected views returned to clients.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ..facilities.models import StaffPosition
from ..registrations.models import RegistrationStatus

class HealthCheckCreate(BaseModel):
    """
    Health Check Creation Schema - Sent by the nurse opening a check

    The ids are optional here so the service can report which one is missing.
    """
    registration_id: Optional[str] = None
    user_id: Optional[str] = None
    doctor_id: Optional[str] = None

class HealthCheckUpdate(BaseModel):
    """
    Health Check Update Schema - Sent by the assigned doctor

    Only the fields present in the request body are applied; an explicit
    0 or false is a real value.
    """
    is_eligible: Optional[bool] = None
    blood_pressure: Optional[str] = Field(None, description="Systolic/diastolic, e.g. 120/80")
    hemoglobin: Optional[float] = Field(None, ge=0, description="g/dL")
    weight: Optional[float] = Field(None, ge=0, description="kg")
    pulse: Optional[int] = Field(None, ge=0, description="beats per minute")
    temperature: Optional[float] = Field(None, description="Celsius")
    general_condition: Optional[str] = None
    deferral_reason: Optional[str] = None
    notes: Optional[str] = None

class UserSummary(BaseModel):
    id: str
    full_name: str
    email: str

    class Config:
        from_attributes = True

class StaffSummary(BaseModel):
    id: str
    position: StaffPosition

    class Config:
        from_attributes = True

class FacilitySummary(BaseModel):
    id: str
    name: str
    address: Optional[str] = None

    class Config:
        from_attributes = True

class RegistrationSummary(BaseModel):
    id: str
    status: RegistrationStatus
    facility: Optional[FacilitySummary] = None

    class Config:
        from_attributes = True

class HealthCheckResponse(BaseModel):
    """
    Health Check Response Schema - Whitelisted view with populated references
    """
    id: str
    registration_id: str
    user_id: str
    staff_id: str
    doctor_id: str
    facility_id: str
    registration: Optional[RegistrationSummary] = None
    user: Optional[UserSummary] = None
    staff: Optional[StaffSummary] = None
    doctor: Optional[StaffSummary] = None
    check_date: Optional[datetime] = None
    is_eligible: Optional[bool] = None
    blood_pressure: Optional[str] = None
    hemoglobin: Optional[float] = None
    weight: Optional[float] = None
    pulse: Optional[int] = None
    temperature: Optional[float] = None
    general_condition: Optional[str] = None
    deferral_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
