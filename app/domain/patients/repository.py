"""Patient repository - Database operations for profiles and identities"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import AuthUser, Profile


class PatientRepository:
    @staticmethod
    def get_profile(db: Session, profile_id: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == profile_id).first()

    @staticmethod
    def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
        return db.query(Profile).filter(func.lower(Profile.email) == email.lower()).first()

    @staticmethod
    def list_patients(db: Session, search: Optional[str] = None) -> list[Profile]:
        query = db.query(Profile).filter(Profile.role == "patient")
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Profile.full_name.ilike(pattern),
                    Profile.email.ilike(pattern),
                    Profile.phone.ilike(pattern),
                )
            )
        return query.order_by(Profile.created_at.desc(), Profile.full_name.asc()).all()

    @staticmethod
    def count_patients(db: Session) -> int:
        return db.query(func.count(Profile.id)).filter(Profile.role == "patient").scalar()

    @staticmethod
    def update(db: Session, profile: Profile, **updates) -> Profile:
        for key, value in updates.items():
            if hasattr(profile, key):
                setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def delete_identity(db: Session, profile_id: str) -> int:
        """Delete without committing; used inside the patient cascade"""
        return (
            db.query(AuthUser).filter(AuthUser.id == profile_id).delete(synchronize_session=False)
        )
