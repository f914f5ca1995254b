"""
Verification service - email verification codes, sign-up, login and password reset
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL, PASSWORD_RESET_MAX_AGE_SECONDS, VERIFICATION_CODE_TTL_MINUTES
from ...email_service import send_password_reset_email, send_verification_code_email
from ...errors import (
    AuthenticationError,
    ConflictError,
    ExpiredCode,
    InvalidCode,
    PersistenceError,
    ValidationError,
)
from ...models import AuthUser, EmailVerificationCode, Profile, generate_id
from ...security_utils import (
    create_access_token,
    generate_numeric_code,
    generate_password_reset_token,
    hash_password,
    verify_password,
    verify_password_reset_token,
)
from ..patients.repository import PatientRepository
from .repository import VerificationRepository
from .schemas import SignUpRequest

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


async def send_code_email(email: str, code: str) -> None:
    """Best-effort delivery of a freshly issued code"""
    try:
        await send_verification_code_email(email, code)
    except Exception as e:
        logger.error(f"❌ Failed to send verification code to {email}: {e}")


async def send_reset_email(email: str, reset_link: str) -> None:
    try:
        await send_password_reset_email(email, reset_link)
    except Exception as e:
        logger.error(f"❌ Failed to send password reset email to {email}: {e}")


class VerificationService:
    """Issues and checks single-use 6-digit codes"""

    def __init__(
        self,
        db: Session,
        now: Callable[[], datetime] = datetime.utcnow,
        ttl_minutes: int = VERIFICATION_CODE_TTL_MINUTES,
    ):
        self.db = db
        self.now = now
        self.ttl = timedelta(minutes=ttl_minutes)
        self.repo = VerificationRepository()

    def issue(self, email: str) -> EmailVerificationCode:
        """Store a new code; earlier unused codes stay valid until they expire"""
        code = generate_numeric_code(6)
        try:
            row = self.repo.add_code(
                self.db, email=email, code=code, expires_at=self.now() + self.ttl, used=False
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to store verification code for {email}: {e}")
            raise PersistenceError("Failed to send verification code") from e
        logger.info(f"🔢 Verification code issued for {email}, expires at {row.expires_at}")
        return row

    def check(self, email: str, code: str) -> EmailVerificationCode:
        """
        Find the unused, unexpired code without consuming it.

        Raises:
            InvalidCode: no unused code matches this email
            ExpiredCode: the matching code is past its expiry
        """
        row = self.repo.find_unused_code(self.db, email, code)
        if not row:
            logger.warning(f"⚠️ Invalid verification code submitted for {email}")
            raise InvalidCode("Invalid verification code")

        now = self.now()
        if now > row.expires_at:
            logger.warning(f"⏰ Verification code for {email} expired at {row.expires_at}")
            raise ExpiredCode("Verification code has expired")
        return row

    def verify(self, email: str, code: str) -> EmailVerificationCode:
        """Check and consume a code"""
        row = self.check(email, code)
        try:
            row = self.repo.mark_used(self.db, row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to mark verification code used for {email}: {e}")
            raise PersistenceError("Failed to verify code") from e

        logger.info(f"✅ Email verified: {email}")
        return row


class AccountService:
    """Patient sign-up, login and password reset on top of the identity store"""

    def __init__(self, db: Session, verification: Optional[VerificationService] = None):
        self.db = db
        self.verification = verification or VerificationService(db)
        self.repo = VerificationRepository()
        self.profiles = PatientRepository()

    def sign_up(self, data: SignUpRequest) -> tuple[Profile, str]:
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.repo.get_identity_by_email(self.db, data.email) or self.profiles.get_profile_by_email(
            self.db, data.email
        ):
            raise ConflictError("An account with this email already exists")

        code_row = self.verification.check(data.email, data.code)

        profile_id = generate_id()
        identity = AuthUser(id=profile_id, email=data.email, password_hash=hash_password(data.password))
        profile = Profile(
            id=profile_id,
            email=data.email,
            full_name=data.full_name.strip(),
            role="patient",
            phone=data.phone,
            date_of_birth=data.date_of_birth,
            address=data.address,
        )
        try:
            self.db.add(identity)
            self.db.add(profile)
            code_row.used = True
            self.db.commit()
            self.db.refresh(profile)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("An account with this email already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create account for {data.email}: {e}")
            raise PersistenceError("Failed to create account") from e

        logger.info(f"👤 Patient account created: {profile.email}")
        return profile, create_access_token(profile.id, profile.role)

    def login(self, email: str, password: str) -> tuple[Profile, str]:
        identity = self.repo.get_identity_by_email(self.db, email)
        if not identity or not verify_password(password, identity.password_hash):
            logger.warning(f"🚫 Failed login for {email}")
            raise AuthenticationError("Invalid email or password")

        profile = self.profiles.get_profile(self.db, identity.id)
        if not profile:
            raise AuthenticationError("Invalid email or password")

        logger.info(f"🔑 {profile.email} signed in")
        return profile, create_access_token(profile.id, profile.role)

    def password_reset_link(self, email: str) -> Optional[str]:
        """Reset link for a known account, None otherwise"""
        if not self.repo.get_identity_by_email(self.db, email):
            logger.info(f"Password reset requested for unknown email {email}")
            return None
        token = generate_password_reset_token(email)
        return f"{FRONTEND_URL.rstrip('/')}/reset-password?token={token}"

    def reset_password(self, token: str, new_password: str) -> None:
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        email = verify_password_reset_token(token, PASSWORD_RESET_MAX_AGE_SECONDS)
        if not email:
            raise ValidationError("Invalid or expired reset link")

        identity = self.repo.get_identity_by_email(self.db, email)
        if not identity:
            raise ValidationError("Invalid or expired reset link")

        try:
            identity.password_hash = hash_password(new_password)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to reset password for {email}: {e}")
            raise PersistenceError("Failed to reset password") from e
        logger.info(f"🔐 Password reset for {email}")
