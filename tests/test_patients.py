from datetime import date

from app.models import Appointment, AuthUser, MedicalRecord, Profile

from .conftest import auth_headers, make_profile


def seed_history(db, patient, doctor):
    db.add(Appointment(
        patient_id=patient.id, doctor_id=doctor.id, appointment_date=date(2030, 1, 2),
        appointment_time="10:00", reason="Checkup", status="approved",
    ))
    db.add(Appointment(
        patient_id=patient.id, doctor_id=doctor.id, appointment_date=date(2030, 1, 3),
        appointment_time="11:00", reason="Follow up", status="cancelled",
    ))
    db.add(MedicalRecord(
        patient_id=patient.id, doctor_id=doctor.id, visit_date=date(2029, 12, 1), diagnosis="Flu",
    ))
    db.commit()


def test_delete_patient_cascades(client, db_session, admin, patient, other_patient, doctor):
    seed_history(db_session, patient, doctor)
    seed_history(db_session, other_patient, doctor)
    patient_id = patient.id

    response = client.delete(f"/patients/{patient_id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["deleted_appointments"] == 2
    assert response.json()["deleted_medical_records"] == 1
    db_session.expire_all()
    assert db_session.get(Profile, patient_id) is None
    assert db_session.get(AuthUser, patient_id) is None
    assert db_session.query(Appointment).filter_by(patient_id=patient_id).count() == 0
    assert db_session.query(MedicalRecord).filter_by(patient_id=patient_id).count() == 0
    # Other patients keep their history
    assert db_session.query(Appointment).filter_by(patient_id=other_patient.id).count() == 2


def test_admins_are_not_deleted_as_patients(client, db_session, admin):
    other_admin = make_profile(db_session, "boss@clinic.test", role="admin")
    response = client.delete(f"/patients/{other_admin.id}", headers=auth_headers(admin))
    assert response.status_code == 404


def test_patient_cannot_delete_patients(client, patient, other_patient):
    response = client.delete(f"/patients/{other_patient.id}", headers=auth_headers(patient))
    assert response.status_code == 403


def test_list_patients_with_search(client, admin, patient, other_patient):
    headers = auth_headers(admin)

    everyone = client.get("/patients", headers=headers).json()
    found = client.get("/patients", params={"search": "sam"}, headers=headers).json()

    assert {p["email"] for p in everyone} == {patient.email, other_patient.email}
    assert [p["email"] for p in found] == [other_patient.email]


def test_update_own_profile(client, patient):
    response = client.patch(
        "/profiles/me",
        json={"full_name": "Patricia P", "phone": "555-987-6543", "date_of_birth": "1990-05-04", "role": "admin"},
        headers=auth_headers(patient),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["full_name"] == "Patricia P"
    assert body["phone"] == "5559876543"
    assert body["date_of_birth"] == "1990-05-04"
    assert body["role"] == "patient"


def test_invalid_phone_is_rejected(client, patient):
    response = client.patch("/profiles/me", json={"phone": "12"}, headers=auth_headers(patient))
    assert response.status_code == 422


def test_upload_profile_photo(client, storage, patient):
    response = client.post(
        "/profiles/me/photo",
        files={"file": ("me.png", b"png-bytes", "image/png")},
        headers=auth_headers(patient),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["profile"]["profile_photo_url"] == body["url"]
    assert body["url"].startswith(f"https://files.test/profile-photos/{patient.id}/")


def test_profile_photo_rejects_pdf(client, patient):
    response = client.post(
        "/profiles/me/photo",
        files={"file": ("me.pdf", b"%PDF", "application/pdf")},
        headers=auth_headers(patient),
    )
    assert response.status_code == 400
