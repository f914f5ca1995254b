"""Appointment service - booking, slot availability and status lifecycle"""

import logging
from datetime import date, datetime
from typing import Callable, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    SlotUnavailableError,
    ValidationError,
)
from ...models import Appointment, Doctor, Profile
from ...utils.object_storage import ObjectStorage
from ..notifications.dispatcher import NotificationDispatcher
from .repository import AppointmentRepository
from .schemas import AppointmentCreate
from .slots import candidate_slots, is_valid_slot, slot_start

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_NOTE = "Rejected by admin"
DEFAULT_CANCELLATION_NOTE = "Cancelled by admin"

# action -> (required current status, resulting status, email template)
TRANSITIONS = {
    "approve": ("pending", "approved", "appointment_approved"),
    "reject": ("pending", "cancelled", "appointment_cancelled"),
    "cancel": ("approved", "cancelled", "appointment_cancelled"),
    "complete": ("approved", "completed", "appointment_completed"),
}


class Availability(NamedTuple):
    available: bool
    message: str


def format_appointment_date(value: date) -> str:
    """e.g. "Sunday, June 1, 2025" """
    return f"{value:%A, %B} {value.day}, {value.year}"


class AppointmentService:
    """Service layer for the appointment lifecycle.

    The caller's identity is always passed in explicitly; the clock is
    injectable so date rules can be exercised deterministically.
    """

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        now: Callable[[], datetime] = datetime.utcnow,
        storage: Optional[ObjectStorage] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.now = now
        self.storage = storage or ObjectStorage()
        self.repo = AppointmentRepository()

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def check_availability(
        self, doctor_id: str, appointment_date: date, appointment_time: str
    ) -> Availability:
        """A slot is free unless a pending, approved or completed booking holds it"""
        if not doctor_id or not appointment_date or not appointment_time:
            raise ValidationError("Missing required fields")
        if not is_valid_slot(appointment_time):
            raise ValidationError(
                f"Invalid time slot '{appointment_time}'. Choose one of: {', '.join(candidate_slots())}"
            )

        try:
            existing = self.repo.find_active_booking(
                self.db, doctor_id, appointment_date, appointment_time
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Availability query failed: {e}")
            raise PersistenceError("Failed to check availability") from e

        if existing:
            return Availability(False, "Time slot is already booked")
        return Availability(True, "Time slot is available")

    def list_available_slots(self, doctor_id: str, appointment_date: date) -> list[str]:
        """Candidate slots that pass check_availability, in ascending order"""
        self._get_doctor(doctor_id)
        return [
            slot
            for slot in candidate_slots()
            if self.check_availability(doctor_id, appointment_date, slot).available
        ]

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def create_appointment(self, data: AppointmentCreate, actor: Profile) -> Appointment:
        """Create a pending appointment for the calling patient"""
        if actor.is_admin:
            raise AuthorizationError("Only patients can book appointments")

        if not data.doctor_id or not data.appointment_date or not data.appointment_time:
            raise ValidationError("Doctor, date and time are required")
        if not data.reason:
            raise ValidationError("Reason for visit is required")
        if not is_valid_slot(data.appointment_time):
            raise ValidationError(
                f"Invalid time slot '{data.appointment_time}'. Choose one of: {', '.join(candidate_slots())}"
            )
        current = self.now()
        if data.appointment_date < current.date():
            raise ValidationError("Appointment date cannot be in the past")
        if data.document_file_name and not data.document_url:
            raise ValidationError("Document file name given without a document URL")
        if data.document_url and not self.storage.owns(data.document_url, actor.id):
            raise ValidationError("Document must be uploaded through POST /appointments/documents")

        doctor = self._get_doctor(data.doctor_id)
        if not doctor.available:
            raise ValidationError(f"Dr. {doctor.full_name} is not accepting appointments")

        availability = self.check_availability(
            data.doctor_id, data.appointment_date, data.appointment_time
        )
        if not availability.available:
            logger.info(
                f"⛔ Slot {data.appointment_date} {data.appointment_time} already booked for doctor {data.doctor_id}"
            )
            raise SlotUnavailableError(availability.message)

        fields = {
            "patient_id": actor.id,
            "doctor_id": data.doctor_id,
            "appointment_date": data.appointment_date,
            "appointment_time": data.appointment_time,
            "appointment_type": data.appointment_type,
            "reason": data.reason,
            "status": "pending",
        }
        if data.document_url:
            fields["document_url"] = data.document_url
            fields["document_file_name"] = data.document_file_name
            fields["document_uploaded_at"] = current

        try:
            appointment = self.repo.create(self.db, **fields)
        except IntegrityError as e:
            # Lost the race for the slot between the check and the insert
            self.db.rollback()
            if self.repo.find_active_booking(
                self.db, data.doctor_id, data.appointment_date, data.appointment_time
            ):
                raise SlotUnavailableError("Time slot is already booked") from e
            logger.error(f"❌ Failed to create appointment: {e}")
            raise PersistenceError("Failed to book appointment") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create appointment: {e}")
            raise PersistenceError("Failed to book appointment") from e

        logger.info(
            f"📅 Appointment {appointment.id} requested by {actor.email} "
            f"for {appointment.appointment_date} {appointment.appointment_time}"
        )
        self._notify("appointment_requested", appointment)
        return appointment

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def transition(
        self,
        appointment_id: str,
        action: str,
        actor: Profile,
        notes: Optional[str] = None,
    ) -> Optional[Appointment]:
        """
        Apply an admin action to an appointment.

        Returns the updated appointment, or None for delete.

        Raises:
            AuthorizationError: actor is not an admin
            NotFoundError: unknown appointment
            InvalidTransitionError: current status does not allow the action
        """
        if not actor.is_admin:
            logger.warning(f"🚫 {actor.email} attempted to {action} appointment {appointment_id}")
            raise AuthorizationError("Only administrators can change appointment status")

        if action != "delete" and action not in TRANSITIONS:
            raise ValidationError(f"Unknown action '{action}'")

        appointment = self.get_by_id(appointment_id)

        if action == "delete":
            self._delete(appointment)
            logger.info(f"🗑️ Appointment {appointment_id} deleted by {actor.email}")
            return None

        required_status, new_status, template_name = TRANSITIONS[action]
        if appointment.status != required_status:
            logger.warning(
                f"⚠️ Cannot {action} appointment {appointment_id}: status is {appointment.status}"
            )
            raise InvalidTransitionError(
                f"Cannot {action} an appointment that is {appointment.status}; it must be {required_status}"
            )

        current = self.now()
        if action == "complete" and slot_start(
            appointment.appointment_date, appointment.appointment_time
        ) > current:
            raise InvalidTransitionError("Cannot complete an appointment that has not taken place yet")

        appointment.status = new_status
        if action in ("reject", "cancel"):
            default_note = DEFAULT_REJECTION_NOTE if action == "reject" else DEFAULT_CANCELLATION_NOTE
            appointment.notes = notes or default_note
            appointment.approved_by = None
            appointment.approved_at = None
        else:
            appointment.notes = notes
            appointment.approved_by = actor.id
            appointment.approved_at = current

        try:
            appointment = self.repo.save(self.db, appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action} appointment {appointment_id}: {e}")
            raise PersistenceError("Failed to update appointment") from e

        logger.info(f"✅ Appointment {appointment_id} {new_status} by {actor.email}")
        self._notify(template_name, appointment)
        return appointment

    def cancel_or_reject(
        self, appointment_id: str, actor: Profile, notes: Optional[str] = None
    ) -> tuple[str, Optional[Appointment]]:
        """Dashboard "cancel": rejects a pending request, cancels an approved visit"""
        self._require_admin(actor)
        appointment = self.get_by_id(appointment_id)
        action = "cancel" if appointment.status == "approved" else "reject"
        return action, self.transition(appointment_id, action, actor, notes)

    def withdraw(self, appointment_id: str, actor: Profile) -> None:
        """A patient removes their own request while it is still pending"""
        appointment = self.get_by_id(appointment_id)
        if appointment.patient_id != actor.id:
            raise NotFoundError("Appointment not found")
        if appointment.status != "pending":
            raise InvalidTransitionError("Only pending appointments can be withdrawn")
        self._delete(appointment)
        logger.info(f"↩️ Appointment {appointment_id} withdrawn by {actor.email}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def get_for_actor(self, appointment_id: str, actor: Profile) -> Appointment:
        appointment = self.get_by_id(appointment_id)
        # Patients only see their own rows; hide existence of others
        if not actor.is_admin and appointment.patient_id != actor.id:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_for_actor(self, actor: Profile, status: Optional[str] = None) -> list[Appointment]:
        if actor.is_admin:
            return self.repo.list_all(self.db, status)
        appointments = self.repo.list_for_patient(self.db, actor.id)
        if status and status != "all":
            appointments = [a for a in appointments if a.status == status]
        return appointments

    def status_summary(self, actor: Profile) -> dict[str, int]:
        self._require_admin(actor)
        counts = self.repo.count_by_status(self.db)
        summary = {s: counts.get(s, 0) for s in ("pending", "approved", "completed", "cancelled")}
        summary["total"] = sum(counts.values())
        return summary

    def calendar(self, actor: Profile, start: date, end: date) -> list[Appointment]:
        self._require_admin(actor)
        if end < start:
            raise ValidationError("End date must not be before start date")
        return self.repo.list_between(self.db, start, end)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, actor: Profile) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Administrator access required")

    def _get_doctor(self, doctor_id: str) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def _delete(self, appointment: Appointment) -> None:
        try:
            self.repo.delete(self.db, appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete appointment {appointment.id}: {e}")
            raise PersistenceError("Failed to delete appointment") from e

    def _notify(self, template_name: str, appointment: Appointment) -> None:
        """Best-effort: dispatch problems are logged, never raised"""
        if not self.dispatcher:
            return
        try:
            patient = appointment.patient
            doctor = appointment.doctor
            if not patient or not patient.email:
                logger.debug(f"⚠️ No patient email for {template_name} on {appointment.id}")
                return
            variables = {
                "full_name": patient.full_name,
                "doctor_name": doctor.full_name if doctor else "",
                "specialization": doctor.specialization if doctor else "",
                "appointment_date": format_appointment_date(appointment.appointment_date),
                "appointment_time": appointment.appointment_time,
                "appointment_reason": appointment.reason,
                "notes": appointment.notes or "",
            }
            self.dispatcher.dispatch(template_name, patient.email, variables)
        except Exception as e:
            logger.error(f"❌ Failed to dispatch {template_name} for appointment {appointment.id}: {e}")
