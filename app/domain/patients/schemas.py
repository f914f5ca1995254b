"""Patient/profile schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone
from ...utils.sanitization import strip_control_characters


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile; role is never updatable"""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v) if v else v

    @field_validator("full_name", "address")
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        return strip_control_characters(v).strip() if v else v


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    profile_photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PhotoUploadResponse(BaseModel):
    success: bool
    url: str
    profile: ProfileResponse
