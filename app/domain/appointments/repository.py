"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_STATUSES, Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def find_active_booking(
        db: Session, doctor_id: str, appointment_date: date, appointment_time: str
    ) -> Optional[Appointment]:
        """The booking holding this slot, if any; cancelled rows are ignored"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == appointment_date,
                Appointment.appointment_time == appointment_time,
                Appointment.status.in_(ACTIVE_STATUSES),
            )
            .first()
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def create(db: Session, **data) -> Appointment:
        appointment = Appointment(**data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def save(db: Session, appointment: Appointment) -> Appointment:
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def list_for_patient(db: Session, patient_id: str) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor))
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
            .all()
        )

    @staticmethod
    def list_all(db: Session, status: Optional[str] = None) -> list[Appointment]:
        query = db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.doctor)
        )
        if status and status != "all":
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.created_at.desc()).all()

    @staticmethod
    def list_between(db: Session, start: date, end: date) -> list[Appointment]:
        """Appointments whose date falls within [start, end], in calendar order"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.appointment_date >= start, Appointment.appointment_date <= end)
            .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
            .all()
        )

    @staticmethod
    def count_by_status(db: Session) -> dict[str, int]:
        rows = (
            db.query(Appointment.status, func.count(Appointment.id))
            .group_by(Appointment.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    def recent(db: Session, limit: int = 5) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .order_by(Appointment.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_for_doctor(db: Session, doctor_id: str) -> int:
        return (
            db.query(func.count(Appointment.id)).filter(Appointment.doctor_id == doctor_id).scalar()
        )

    @staticmethod
    def delete_for_patient(db: Session, patient_id: str) -> int:
        """Delete without committing; used inside the patient cascade"""
        return (
            db.query(Appointment)
            .filter(Appointment.patient_id == patient_id)
            .delete(synchronize_session=False)
        )
