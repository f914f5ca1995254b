from datetime import date, datetime

import pytest

from app.domain.appointments.schemas import AppointmentCreate
from app.domain.appointments.service import Availability, AppointmentService, format_appointment_date
from app.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from app.models import Appointment

from .conftest import Clock, FailingDispatcher, make_doctor

TODAY = date(2030, 1, 1)
TOMORROW = date(2030, 1, 2)


@pytest.fixture
def clock():
    return Clock(datetime(2030, 1, 1, 9, 0))


@pytest.fixture
def service(db_session, dispatcher, clock, storage):
    return AppointmentService(db_session, dispatcher, now=clock, storage=storage)


def booking(doctor, day=TOMORROW, time="10:00", **overrides):
    values = {
        "doctor_id": doctor.id,
        "appointment_date": day,
        "appointment_time": time,
        "reason": "Chest pain",
        "appointment_type": "consultation",
    }
    values.update(overrides)
    return AppointmentCreate(**values)


def add_appointment(db, patient, doctor, status="pending", day=TOMORROW, time="10:00"):
    appointment = Appointment(
        patient_id=patient.id,
        doctor_id=doctor.id,
        appointment_date=day,
        appointment_time=time,
        reason="Checkup",
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


class TestAvailability:
    def test_free_slot_is_available(self, service, doctor):
        result = service.check_availability(doctor.id, TOMORROW, "10:00")
        assert result == Availability(True, "Time slot is available")

    @pytest.mark.parametrize("status", ["pending", "approved", "completed"])
    def test_active_booking_blocks_slot(self, service, db_session, patient, doctor, status):
        add_appointment(db_session, patient, doctor, status=status)
        result = service.check_availability(doctor.id, TOMORROW, "10:00")
        assert result == Availability(False, "Time slot is already booked")

    def test_cancelled_booking_frees_slot(self, service, db_session, patient, doctor):
        add_appointment(db_session, patient, doctor, status="cancelled")
        assert service.check_availability(doctor.id, TOMORROW, "10:00").available

    def test_unknown_slot_label_is_rejected(self, service, doctor):
        with pytest.raises(ValidationError):
            service.check_availability(doctor.id, TOMORROW, "17:00")

    def test_listed_slots_exclude_booked_ones(self, service, db_session, patient, doctor):
        add_appointment(db_session, patient, doctor, time="08:00")
        add_appointment(db_session, patient, doctor, time="13:00", status="approved")
        add_appointment(db_session, patient, doctor, time="14:00", status="cancelled")

        slots = service.list_available_slots(doctor.id, TOMORROW)

        assert slots == ["09:00", "10:00", "11:00", "12:00", "14:00", "15:00", "16:00"]

    def test_other_doctors_do_not_block(self, service, db_session, patient, doctor):
        other = make_doctor(db_session, full_name="Alan Turing")
        add_appointment(db_session, patient, other)
        assert service.check_availability(doctor.id, TOMORROW, "10:00").available

    def test_listing_slots_for_unknown_doctor(self, service):
        with pytest.raises(NotFoundError):
            service.list_available_slots("missing", TOMORROW)


class TestCreateAppointment:
    def test_creates_pending_appointment_and_notifies(self, service, dispatcher, patient, doctor):
        appointment = service.create_appointment(booking(doctor), patient)

        assert appointment.status == "pending"
        assert appointment.patient_id == patient.id
        assert appointment.approved_by is None
        assert appointment.document_url is None

        template, recipient, variables = dispatcher.sent[0]
        assert template == "appointment_requested"
        assert recipient == patient.email
        assert variables["doctor_name"] == doctor.full_name
        assert variables["appointment_date"] == format_appointment_date(TOMORROW)
        assert variables["appointment_time"] == "10:00"

    def test_same_day_booking_is_allowed(self, service, patient, doctor):
        appointment = service.create_appointment(booking(doctor, day=TODAY), patient)
        assert appointment.appointment_date == TODAY

    def test_past_date_is_rejected(self, service, db_session, patient, doctor):
        with pytest.raises(ValidationError, match="past"):
            service.create_appointment(booking(doctor, day=date(2029, 12, 31)), patient)
        assert db_session.query(Appointment).count() == 0

    def test_slot_outside_grid_is_rejected(self, service, patient, doctor):
        with pytest.raises(ValidationError):
            service.create_appointment(booking(doctor, time="18:00"), patient)

    def test_blank_reason_is_rejected(self, service, patient, doctor):
        with pytest.raises(ValidationError):
            service.create_appointment(booking(doctor, reason="   "), patient)

    def test_admins_cannot_book(self, service, admin, doctor):
        with pytest.raises(AuthorizationError):
            service.create_appointment(booking(doctor), admin)

    def test_unavailable_doctor_is_rejected(self, service, db_session, patient):
        away = make_doctor(db_session, full_name="Away Doctor", available=False)
        with pytest.raises(ValidationError):
            service.create_appointment(booking(away), patient)

    def test_unknown_doctor(self, service, patient):
        with pytest.raises(NotFoundError):
            service.create_appointment(AppointmentCreate(
                doctor_id="missing", appointment_date=TOMORROW, appointment_time="10:00", reason="x"
            ), patient)

    def test_double_booking_is_refused(self, service, patient, other_patient, doctor):
        service.create_appointment(booking(doctor), patient)
        with pytest.raises(SlotUnavailableError):
            service.create_appointment(booking(doctor), other_patient)

    def test_slot_can_be_rebooked_after_cancellation(
        self, service, db_session, patient, other_patient, doctor
    ):
        add_appointment(db_session, patient, doctor, status="cancelled")
        appointment = service.create_appointment(booking(doctor), other_patient)
        assert appointment.status == "pending"

    def test_losing_the_insert_race_reports_slot_unavailable(
        self, service, db_session, patient, other_patient, doctor, monkeypatch
    ):
        add_appointment(db_session, other_patient, doctor)
        # Both requests passed the availability check before either inserted
        monkeypatch.setattr(
            service, "check_availability", lambda *args: Availability(True, "Time slot is available")
        )

        with pytest.raises(SlotUnavailableError):
            service.create_appointment(booking(doctor), patient)

        assert db_session.query(Appointment).count() == 1

    def test_document_reference_is_stored(self, service, clock, patient, doctor):
        url = f"https://files.test/{patient.id}/1-abc.pdf"
        appointment = service.create_appointment(
            booking(doctor, document_url=url, document_file_name="referral.pdf"),
            patient,
        )
        assert appointment.document_url == url
        assert appointment.document_file_name == "referral.pdf"
        assert appointment.document_uploaded_at == clock.current

    @pytest.mark.parametrize(
        "url",
        [
            "https://evil.example/referral.pdf",
            "https://files.test/someone-else/1-abc.pdf",
            "https://files.test.evil.example/{patient_id}/1-abc.pdf",
            "https://files.test/{patient_id}/../someone-else/1-abc.pdf",
        ],
    )
    def test_document_must_be_own_upload(self, service, db_session, patient, doctor, url):
        with pytest.raises(ValidationError):
            service.create_appointment(
                booking(doctor, document_url=url.format(patient_id=patient.id), document_file_name="x.pdf"),
                patient,
            )
        assert db_session.query(Appointment).count() == 0

    def test_notification_failure_does_not_fail_booking(self, db_session, clock, patient, doctor):
        service = AppointmentService(db_session, FailingDispatcher(), now=clock)
        appointment = service.create_appointment(booking(doctor), patient)
        assert db_session.get(Appointment, appointment.id).status == "pending"


class TestTransitions:
    def test_approve_pending(self, service, dispatcher, clock, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)

        updated = service.transition(appointment.id, "approve", admin, notes="Bring your reports")

        assert updated.status == "approved"
        assert updated.approved_by == admin.id
        assert updated.approved_at == clock.current
        assert updated.notes == "Bring your reports"
        assert dispatcher.sent[-1][0] == "appointment_approved"
        assert dispatcher.sent[-1][2]["notes"] == "Bring your reports"

    def test_approve_without_notes_stores_null(self, service, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)
        assert service.transition(appointment.id, "approve", admin).notes is None

    def test_reject_uses_default_note(self, service, dispatcher, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)

        updated = service.transition(appointment.id, "reject", admin)

        assert updated.status == "cancelled"
        assert updated.notes == "Rejected by admin"
        assert updated.approved_by is None
        assert updated.approved_at is None
        assert dispatcher.sent[-1][0] == "appointment_cancelled"

    def test_reject_keeps_given_note(self, service, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)
        updated = service.transition(appointment.id, "reject", admin, notes="Doctor on leave")
        assert updated.notes == "Doctor on leave"

    def test_cancel_approved_frees_slot(
        self, service, dispatcher, db_session, admin, patient, other_patient, doctor
    ):
        appointment = add_appointment(db_session, patient, doctor, status="approved")
        appointment.approved_by = admin.id
        db_session.commit()

        updated = service.transition(appointment.id, "cancel", admin)

        assert updated.status == "cancelled"
        assert updated.notes == "Cancelled by admin"
        assert updated.approved_by is None
        assert updated.approved_at is None
        assert dispatcher.sent[-1][0] == "appointment_cancelled"

        rebooked = service.create_appointment(booking(doctor), other_patient)
        assert rebooked.status == "pending"
        assert rebooked.patient_id == other_patient.id

    def test_cancel_requires_approved(self, service, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)
        with pytest.raises(InvalidTransitionError):
            service.transition(appointment.id, "cancel", admin)
        db_session.refresh(appointment)
        assert appointment.status == "pending"

    @pytest.mark.parametrize("status, action", [("pending", "reject"), ("approved", "cancel")])
    def test_dashboard_cancel_picks_action(self, service, db_session, admin, patient, doctor, status, action):
        appointment = add_appointment(db_session, patient, doctor, status=status)

        chosen, updated = service.cancel_or_reject(appointment.id, admin)

        assert chosen == action
        assert updated.status == "cancelled"

    @pytest.mark.parametrize("status", ["approved", "completed", "cancelled"])
    def test_approve_requires_pending(self, service, dispatcher, db_session, admin, patient, doctor, status):
        appointment = add_appointment(db_session, patient, doctor, status=status)

        with pytest.raises(InvalidTransitionError):
            service.transition(appointment.id, "approve", admin)

        db_session.refresh(appointment)
        assert appointment.status == status
        assert appointment.approved_by is None
        assert dispatcher.sent == []

    def test_complete_requires_approved(self, service, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor, day=TODAY, time="08:00")
        with pytest.raises(InvalidTransitionError):
            service.transition(appointment.id, "complete", admin)

    def test_complete_before_start_is_refused(self, service, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor, status="approved", time="10:00")
        with pytest.raises(InvalidTransitionError, match="not taken place"):
            service.transition(appointment.id, "complete", admin)
        db_session.refresh(appointment)
        assert appointment.status == "approved"

    def test_complete_after_start(self, service, dispatcher, clock, db_session, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor, status="approved", day=TODAY, time="09:00")

        updated = service.transition(appointment.id, "complete", admin, notes="All good")

        assert updated.status == "completed"
        assert updated.approved_by == admin.id
        assert updated.approved_at == clock.current
        assert dispatcher.sent[-1][0] == "appointment_completed"

    def test_completed_and_cancelled_are_terminal(self, service, db_session, admin, patient, doctor):
        done = add_appointment(db_session, patient, doctor, status="completed", day=TODAY, time="08:00")
        gone = add_appointment(db_session, patient, doctor, status="cancelled")
        for appointment in (done, gone):
            for action in ("approve", "reject", "cancel", "complete"):
                with pytest.raises(InvalidTransitionError):
                    service.transition(appointment.id, action, admin)

    @pytest.mark.parametrize("status", ["pending", "approved", "completed", "cancelled"])
    def test_delete_in_any_status(self, service, db_session, admin, patient, doctor, status):
        appointment = add_appointment(db_session, patient, doctor, status=status)
        assert service.transition(appointment.id, "delete", admin) is None
        assert db_session.query(Appointment).count() == 0

    def test_patients_cannot_transition(self, service, db_session, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)
        with pytest.raises(AuthorizationError):
            service.transition(appointment.id, "approve", patient)
        db_session.refresh(appointment)
        assert appointment.status == "pending"

    def test_unknown_appointment(self, service, admin):
        with pytest.raises(NotFoundError):
            service.transition("missing", "approve", admin)

    def test_notification_failure_still_commits(self, db_session, clock, admin, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)
        service = AppointmentService(db_session, FailingDispatcher(), now=clock)

        service.transition(appointment.id, "approve", admin)

        db_session.refresh(appointment)
        assert appointment.status == "approved"


class TestPatientAccess:
    def test_withdraw_own_pending(self, service, db_session, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor)
        service.withdraw(appointment.id, patient)
        assert db_session.query(Appointment).count() == 0

    def test_cannot_withdraw_after_approval(self, service, db_session, patient, doctor):
        appointment = add_appointment(db_session, patient, doctor, status="approved")
        with pytest.raises(InvalidTransitionError):
            service.withdraw(appointment.id, patient)

    def test_cannot_withdraw_someone_elses(self, service, db_session, patient, other_patient, doctor):
        appointment = add_appointment(db_session, other_patient, doctor)
        with pytest.raises(NotFoundError):
            service.withdraw(appointment.id, patient)

    def test_patient_lists_only_own(self, service, db_session, admin, patient, other_patient, doctor):
        add_appointment(db_session, patient, doctor, time="08:00")
        add_appointment(db_session, other_patient, doctor, time="09:00")

        assert [a.appointment_time for a in service.list_for_actor(patient)] == ["08:00"]
        assert len(service.list_for_actor(admin)) == 2

    def test_status_summary(self, service, db_session, admin, patient, doctor):
        add_appointment(db_session, patient, doctor, time="08:00")
        add_appointment(db_session, patient, doctor, time="09:00", status="approved")
        add_appointment(db_session, patient, doctor, time="10:00", status="cancelled")

        summary = service.status_summary(admin)

        assert summary == {"pending": 1, "approved": 1, "completed": 0, "cancelled": 1, "total": 3}

    def test_calendar_range(self, service, db_session, admin, patient, doctor):
        add_appointment(db_session, patient, doctor, day=date(2030, 1, 2))
        add_appointment(db_session, patient, doctor, day=date(2030, 1, 9))

        in_range = service.calendar(admin, date(2030, 1, 1), date(2030, 1, 5))

        assert [a.appointment_date for a in in_range] == [date(2030, 1, 2)]
        with pytest.raises(ValidationError):
            service.calendar(admin, date(2030, 1, 5), date(2030, 1, 1))
