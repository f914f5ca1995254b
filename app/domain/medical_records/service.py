"""Medical record service - Admin-maintained visit history"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from ...models import Doctor, MedicalRecord, Profile
from .repository import MedicalRecordRepository
from .schemas import MedicalRecordCreate

logger = logging.getLogger(__name__)


class MedicalRecordService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = MedicalRecordRepository()

    def list_records(self, actor: Profile, patient_id: Optional[str] = None) -> list[MedicalRecord]:
        """Newest visit first. Patients are always limited to their own records."""
        if not actor.is_admin:
            return self.repo.list_records(self.db, actor.id)
        return self.repo.list_records(self.db, patient_id)

    def create_record(self, data: MedicalRecordCreate, actor: Profile) -> MedicalRecord:
        self._require_admin(actor)
        if not data.diagnosis:
            raise ValidationError("Diagnosis is required")

        patient = self.db.query(Profile).filter(Profile.id == data.patient_id).first()
        if not patient or patient.role != "patient":
            raise NotFoundError("Patient not found")
        if not self.db.query(Doctor).filter(Doctor.id == data.doctor_id).first():
            raise NotFoundError("Doctor not found")

        try:
            record = self.repo.create(self.db, **data.model_dump())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create medical record: {e}")
            raise PersistenceError("Failed to add medical record") from e

        logger.info(f"📋 Medical record {record.id} added for patient {patient.email}")
        return record

    def delete_record(self, record_id: str, actor: Profile) -> None:
        self._require_admin(actor)
        record = self.repo.get_by_id(self.db, record_id)
        if not record:
            raise NotFoundError("Medical record not found")
        try:
            self.repo.delete(self.db, record)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete medical record {record_id}: {e}")
            raise PersistenceError("Failed to delete medical record") from e

    def _require_admin(self, actor: Profile) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can manage medical records")
