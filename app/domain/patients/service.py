"""Patient service - Own-profile maintenance and admin patient management"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from ...models import Profile
from ...utils.object_storage import ALLOWED_PHOTO_TYPES, ObjectStorage, photo_key, validate_upload
from ..appointments.repository import AppointmentRepository
from ..medical_records.repository import MedicalRecordRepository
from .repository import PatientRepository
from .schemas import ProfileUpdate

logger = logging.getLogger(__name__)


class PatientService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def update_profile(self, actor: Profile, data: ProfileUpdate) -> Profile:
        updates = data.model_dump(exclude_unset=True)
        if "full_name" in updates and not updates["full_name"]:
            raise ValidationError("Full name cannot be empty")
        try:
            return self.repo.update(self.db, actor, **updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update profile {actor.id}: {e}")
            raise PersistenceError("Failed to update profile") from e

    def upload_photo(
        self,
        actor: Profile,
        storage: ObjectStorage,
        filename: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> Profile:
        """Store the image and point profile_photo_url at it"""
        validate_upload(filename, content_type, len(data), ALLOWED_PHOTO_TYPES)
        url = storage.store(data, content_type, photo_key(actor.id, filename))
        try:
            return self.repo.update(self.db, actor, profile_photo_url=url)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save photo URL for {actor.id}: {e}")
            raise PersistenceError("Failed to update profile photo") from e

    def list_patients(self, actor: Profile, search: Optional[str] = None) -> list[Profile]:
        self._require_admin(actor)
        return self.repo.list_patients(self.db, search)

    def delete_patient(self, patient_id: str, actor: Profile) -> dict:
        """
        Remove a patient and everything that references them.

        Appointments, then medical records, then the login identity, then the
        profile, all in one transaction. Nothing is deleted if any step fails.
        """
        self._require_admin(actor)
        patient = self.repo.get_profile(self.db, patient_id)
        if not patient or patient.role != "patient":
            raise NotFoundError("Patient not found")

        try:
            appointments = AppointmentRepository.delete_for_patient(self.db, patient_id)
            records = MedicalRecordRepository.delete_for_patient(self.db, patient_id)
            self.repo.delete_identity(self.db, patient_id)
            self.db.delete(patient)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete patient {patient_id}: {e}")
            raise PersistenceError("Failed to delete patient") from e

        logger.info(
            f"🗑️ Patient {patient_id} deleted by {actor.email} "
            f"({appointments} appointments, {records} medical records)"
        )
        return {
            "message": "Patient deleted",
            "deleted_appointments": appointments,
            "deleted_medical_records": records,
        }

    def _require_admin(self, actor: Profile) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can manage patients")
