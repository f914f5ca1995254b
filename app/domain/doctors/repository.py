"""Doctor repository - Database operations for doctors"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Doctor


class DoctorRepository:
    @staticmethod
    def list_doctors(db: Session, available_only: bool = False) -> list[Doctor]:
        query = db.query(Doctor)
        if available_only:
            query = query.filter(Doctor.available.is_(True))
        return query.order_by(Doctor.full_name.asc()).all()

    @staticmethod
    def get_by_id(db: Session, doctor_id: str) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id).first()

    @staticmethod
    def create(db: Session, **data) -> Doctor:
        doctor = Doctor(**data)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def update(db: Session, doctor: Doctor, **updates) -> Doctor:
        """Update a doctor with provided fields; None clears only nullable columns"""
        columns = Doctor.__table__.columns
        for key, value in updates.items():
            if key not in columns:
                continue
            if value is None and not columns[key].nullable:
                continue
            setattr(doctor, key, value)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def delete(db: Session, doctor: Doctor) -> None:
        db.delete(doctor)
        db.commit()
