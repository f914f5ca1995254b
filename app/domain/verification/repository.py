"""Verification repository - Database operations for codes and identities"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import AuthUser, EmailVerificationCode


class VerificationRepository:
    @staticmethod
    def add_code(db: Session, **data) -> EmailVerificationCode:
        row = EmailVerificationCode(**data)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def find_unused_code(db: Session, email: str, code: str) -> Optional[EmailVerificationCode]:
        """Newest unused row for this email and code"""
        return (
            db.query(EmailVerificationCode)
            .filter(
                EmailVerificationCode.email == email,
                EmailVerificationCode.code == code,
                EmailVerificationCode.used.is_(False),
            )
            .order_by(EmailVerificationCode.created_at.desc(), EmailVerificationCode.id.desc())
            .first()
        )

    @staticmethod
    def mark_used(db: Session, row: EmailVerificationCode) -> EmailVerificationCode:
        row.used = True
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def get_identity_by_email(db: Session, email: str) -> Optional[AuthUser]:
        return db.query(AuthUser).filter(func.lower(AuthUser.email) == email.lower()).first()
