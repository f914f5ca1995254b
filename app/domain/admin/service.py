"""Admin dashboard statistics"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...errors import AuthorizationError
from ...models import Doctor, Profile
from ..appointments.repository import AppointmentRepository
from ..medical_records.repository import MedicalRecordRepository
from ..patients.repository import PatientRepository

RECENT_APPOINTMENTS_LIMIT = 5


class AdminStatsService:
    def __init__(self, db: Session):
        self.db = db

    def dashboard_stats(self, actor: Profile) -> dict:
        if not actor.is_admin:
            raise AuthorizationError("Administrator access required")

        by_status = AppointmentRepository.count_by_status(self.db)
        return {
            "total_patients": PatientRepository.count_patients(self.db),
            "total_doctors": self.db.query(func.count(Doctor.id)).scalar(),
            "total_appointments": sum(by_status.values()),
            "pending_appointments": by_status.get("pending", 0),
            "approved_appointments": by_status.get("approved", 0),
            "total_medical_records": MedicalRecordRepository.count(self.db),
            "recent_appointments": AppointmentRepository.recent(self.db, RECENT_APPOINTMENTS_LIMIT),
        }
