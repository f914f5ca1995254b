"""Medical record schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...utils.sanitization import strip_control_characters
from ..appointments.schemas import DoctorSummary, PersonSummary


class MedicalRecordCreate(BaseModel):
    patient_id: str
    doctor_id: str
    visit_date: date
    diagnosis: str = Field(..., min_length=1)
    prescription: Optional[str] = None
    lab_results: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("diagnosis", "prescription", "lab_results", "notes")
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return strip_control_characters(v).strip()


class MedicalRecordResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    visit_date: date
    diagnosis: str
    prescription: Optional[str] = None
    lab_results: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    patient: Optional[PersonSummary] = None
    doctor: Optional[DoctorSummary] = None

    class Config:
        from_attributes = True
