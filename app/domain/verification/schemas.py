"""Verification and account schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_verification_code
from ..patients.schemas import ProfileResponse


class _EmailModel(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return validate_email(v)


class SendCodeRequest(_EmailModel):
    pass


class SendCodeResponse(BaseModel):
    success: bool
    message: str
    expires_in_minutes: int


class VerifyCodeRequest(_EmailModel):
    code: str

    @field_validator("code")
    @classmethod
    def validate_code_field(cls, v: str) -> str:
        return validate_verification_code(v)


class VerifyCodeResponse(BaseModel):
    success: bool
    message: str


class SignUpRequest(VerifyCodeRequest):
    password: str
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v) if v else v


class LoginRequest(_EmailModel):
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse


class ForgotPasswordRequest(_EmailModel):
    pass


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str
