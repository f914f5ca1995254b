import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Statuses that hold a doctor's slot
ACTIVE_STATUSES = ("pending", "approved", "completed")

_ACTIVE_SLOT_PREDICATE = text("status IN ('pending', 'approved', 'completed')")


def generate_id():
    return str(uuid.uuid4())


class AuthUser(Base):
    """Identity store row: login credentials, keyed by the profile id"""

    __tablename__ = "auth_users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="patient")  # admin, patient
    phone = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    profile_photo_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=generate_id)
    full_name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    license_number = Column(String(100), nullable=False)
    years_of_experience = Column(Integer, nullable=True)
    consultation_fee = Column(Float, nullable=True)
    available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one active booking per doctor/date/slot; cancelled rows free the slot
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    patient_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # "08:00" .. "16:00"
    appointment_type = Column(String(50), nullable=True)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    approved_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    document_url = Column(String(1000), nullable=True)
    document_file_name = Column(String(255), nullable=True)
    document_uploaded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Profile", foreign_keys=[patient_id])
    doctor = relationship("Doctor")


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(String(36), primary_key=True, default=generate_id)
    patient_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False)
    visit_date = Column(Date, nullable=False)
    diagnosis = Column(Text, nullable=False)
    prescription = Column(Text, nullable=True)
    lab_results = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    patient = relationship("Profile")
    doctor = relationship("Doctor")


class EmailVerificationCode(Base):
    __tablename__ = "email_verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True, index=True)
    template_name = Column(String(100), unique=True, index=True, nullable=False)
    subject = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)  # HTML with {{variable}} placeholders
    sender_name = Column(String(255), nullable=True)
    sender_email = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
