"""
Auth routes - verification codes, patient sign-up, login and password reset
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import VERIFICATION_CODE_TTL_MINUTES
from ...database import get_db
from ...models import Profile
from ..patients.schemas import ProfileResponse
from .schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SendCodeRequest,
    SendCodeResponse,
    SignUpRequest,
    TokenResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from .service import AccountService, VerificationService, send_code_email, send_reset_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    return VerificationService(db)


def get_account_service(
    db: Session = Depends(get_db),
    verification: VerificationService = Depends(get_verification_service),
) -> AccountService:
    return AccountService(db, verification)


@router.post("/send-verification-code", response_model=SendCodeResponse)
async def send_verification_code(
    data: SendCodeRequest,
    background_tasks: BackgroundTasks,
    service: VerificationService = Depends(get_verification_service),
):
    """Issue a 6-digit code and email it; the code itself is never returned"""
    row = service.issue(data.email)
    background_tasks.add_task(send_code_email, data.email, row.code)
    return SendCodeResponse(
        success=True,
        message="Verification code sent to your email",
        expires_in_minutes=VERIFICATION_CODE_TTL_MINUTES,
    )


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    data: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service),
):
    service.verify(data.email, data.code)
    return VerifyCodeResponse(success=True, message="Email verified successfully")


@router.post("/sign-up", response_model=TokenResponse, status_code=201)
async def sign_up(data: SignUpRequest, service: AccountService = Depends(get_account_service)):
    profile, token = service.sign_up(data)
    return TokenResponse(access_token=token, profile=ProfileResponse.model_validate(profile))


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: AccountService = Depends(get_account_service)):
    profile, token = service.login(data.email, data.password)
    return TokenResponse(access_token=token, profile=ProfileResponse.model_validate(profile))


@router.get("/me", response_model=ProfileResponse)
async def get_me(current_user: Profile = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    service: AccountService = Depends(get_account_service),
):
    """Same response whether or not the email has an account"""
    reset_link = service.password_reset_link(data.email)
    if reset_link:
        background_tasks.add_task(send_reset_email, data.email, reset_link)
    return {
        "success": True,
        "message": "If an account exists for this email, a reset link has been sent",
    }


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest, service: AccountService = Depends(get_account_service)
):
    service.reset_password(data.token, data.new_password)
    return {"success": True, "message": "Password updated successfully"}
