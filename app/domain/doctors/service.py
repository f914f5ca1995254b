"""Doctor service - Business logic for doctor profiles"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import AuthorizationError, ConflictError, NotFoundError, PersistenceError
from ...models import Doctor, Profile
from ..appointments.repository import AppointmentRepository
from ..medical_records.repository import MedicalRecordRepository
from .repository import DoctorRepository
from .schemas import DoctorCreate, DoctorUpdate

logger = logging.getLogger(__name__)


class DoctorService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    def list_doctors(self, actor: Profile, include_unavailable: bool = True) -> list[Doctor]:
        """Admins see every doctor; patients only see bookable ones"""
        available_only = not (actor.is_admin and include_unavailable)
        return self.repo.list_doctors(self.db, available_only=available_only)

    def get_doctor(self, doctor_id: str, actor: Profile) -> Doctor:
        doctor = self.repo.get_by_id(self.db, doctor_id)
        if not doctor or (not actor.is_admin and not doctor.available):
            raise NotFoundError("Doctor not found")
        return doctor

    def create_doctor(self, data: DoctorCreate, actor: Profile) -> Doctor:
        self._require_admin(actor)
        try:
            doctor = self.repo.create(self.db, **data.model_dump())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create doctor: {e}")
            raise PersistenceError("Failed to add doctor") from e
        logger.info(f"🩺 Doctor {doctor.full_name} added by {actor.email}")
        return doctor

    def update_doctor(self, doctor_id: str, data: DoctorUpdate, actor: Profile) -> Doctor:
        self._require_admin(actor)
        doctor = self.get_doctor(doctor_id, actor)
        try:
            return self.repo.update(self.db, doctor, **data.model_dump(exclude_unset=True))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update doctor {doctor_id}: {e}")
            raise PersistenceError("Failed to update doctor") from e

    def delete_doctor(self, doctor_id: str, actor: Profile) -> dict:
        self._require_admin(actor)
        doctor = self.get_doctor(doctor_id, actor)

        appointments = AppointmentRepository.count_for_doctor(self.db, doctor_id)
        records = MedicalRecordRepository.count_for_doctor(self.db, doctor_id)
        if appointments or records:
            raise ConflictError(
                f"Cannot delete Dr. {doctor.full_name}: {appointments} appointment(s) and "
                f"{records} medical record(s) still reference them. Mark the doctor unavailable instead."
            )

        try:
            self.repo.delete(self.db, doctor)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete doctor {doctor_id}: {e}")
            raise PersistenceError("Failed to delete doctor") from e

        logger.info(f"🗑️ Doctor {doctor_id} deleted by {actor.email}")
        return {"message": "Doctor deleted"}

    def _require_admin(self, actor: Profile) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can manage doctors")
