"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...utils.sanitization import strip_control_characters

AppointmentType = Literal["consultation", "follow_up", "emergency", "routine_checkup"]
AppointmentStatus = Literal["pending", "approved", "completed", "cancelled"]
TransitionAction = Literal["approve", "reject", "cancel", "complete", "delete"]


class AvailabilityRequest(BaseModel):
    doctor_id: str
    appointment_date: date
    appointment_time: str


class AvailabilityResponse(BaseModel):
    available: bool
    message: str


class AvailableSlotsResponse(BaseModel):
    doctor_id: str
    appointment_date: date
    slots: list[str]


class AppointmentCreate(BaseModel):
    """Schema for a patient's booking request"""

    doctor_id: str
    appointment_date: date
    appointment_time: str
    reason: str
    appointment_type: Optional[AppointmentType] = None
    # Reference returned by POST /appointments/documents
    document_url: Optional[str] = None
    document_file_name: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: str) -> str:
        return strip_control_characters(v).strip()


class TransitionRequest(BaseModel):
    action: TransitionAction
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = strip_control_characters(v).strip()
        return v or None


class ApproveOrRejectRequest(BaseModel):
    """Request surface kept for the dashboard's approve/cancel buttons"""

    appointment_id: str
    action: Literal["approve", "cancel"]
    notes: Optional[str] = None


class PersonSummary(BaseModel):
    id: str
    full_name: str
    email: Optional[str] = None

    class Config:
        from_attributes = True


class DoctorSummary(BaseModel):
    id: str
    full_name: str
    specialization: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    appointment_time: str
    appointment_type: Optional[str] = None
    reason: str
    status: AppointmentStatus
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    document_url: Optional[str] = None
    document_file_name: Optional[str] = None
    document_uploaded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    patient: Optional[PersonSummary] = None
    doctor: Optional[DoctorSummary] = None

    class Config:
        from_attributes = True


class TransitionResponse(BaseModel):
    success: bool
    message: str
    appointment: Optional[AppointmentResponse] = None


class StatusSummaryResponse(BaseModel):
    total: int
    pending: int
    approved: int
    completed: int
    cancelled: int
