"""Medical record repository - Database operations for medical records"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import MedicalRecord


class MedicalRecordRepository:
    @staticmethod
    def list_records(db: Session, patient_id: Optional[str] = None) -> list[MedicalRecord]:
        query = db.query(MedicalRecord).options(
            joinedload(MedicalRecord.patient), joinedload(MedicalRecord.doctor)
        )
        if patient_id:
            query = query.filter(MedicalRecord.patient_id == patient_id)
        return query.order_by(MedicalRecord.visit_date.desc()).all()

    @staticmethod
    def get_by_id(db: Session, record_id: str) -> Optional[MedicalRecord]:
        return db.query(MedicalRecord).filter(MedicalRecord.id == record_id).first()

    @staticmethod
    def create(db: Session, **data) -> MedicalRecord:
        record = MedicalRecord(**data)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete(db: Session, record: MedicalRecord) -> None:
        db.delete(record)
        db.commit()

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(MedicalRecord.id)).scalar()

    @staticmethod
    def count_for_doctor(db: Session, doctor_id: str) -> int:
        return (
            db.query(func.count(MedicalRecord.id))
            .filter(MedicalRecord.doctor_id == doctor_id)
            .scalar()
        )

    @staticmethod
    def delete_for_patient(db: Session, patient_id: str) -> int:
        """Delete without committing; used inside the patient cascade"""
        return (
            db.query(MedicalRecord)
            .filter(MedicalRecord.patient_id == patient_id)
            .delete(synchronize_session=False)
        )
