from app.models import EmailVerificationCode

from .conftest import TEST_PASSWORD, auth_headers


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_missing_token_is_unauthenticated(client):
    assert client.get("/appointments").status_code == 401


def test_garbage_token_is_unauthenticated(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer a.b.c"})
    assert response.status_code == 401


def test_patient_cannot_reach_admin_routes(client, patient):
    headers = auth_headers(patient)
    assert client.get("/admin/stats", headers=headers).status_code == 403
    assert client.get("/patients", headers=headers).status_code == 403
    assert client.get("/appointments/summary", headers=headers).status_code == 403


def test_sign_up_flow(client, db_session):
    response = client.post("/auth/send-verification-code", json={"email": "New@Example.com"})
    assert response.status_code == 200
    assert response.json()["expires_in_minutes"] == 10
    assert "code" not in response.json()

    row = db_session.query(EmailVerificationCode).filter_by(email="new@example.com").one()

    response = client.post(
        "/auth/sign-up",
        json={
            "email": "new@example.com",
            "code": row.code,
            "password": "hunter22",
            "full_name": "New Patient",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["profile"]["role"] == "patient"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


def test_verify_code_errors(client):
    response = client.post("/auth/verify-code", json={"email": "a@example.com", "code": "123456"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid verification code"

    response = client.post("/auth/verify-code", json={"email": "a@example.com", "code": "12ab"})
    assert response.status_code == 422


def test_verify_code_success(client, db_session):
    client.post("/auth/send-verification-code", json={"email": "v@example.com"})
    row = db_session.query(EmailVerificationCode).filter_by(email="v@example.com").one()

    response = client.post("/auth/verify-code", json={"email": "v@example.com", "code": row.code})

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_login(client, patient):
    response = client.post("/auth/login", json={"email": patient.email, "password": TEST_PASSWORD})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

    response = client.post("/auth/login", json={"email": patient.email, "password": "wrong-one"})
    assert response.status_code == 401


def test_forgot_password_does_not_reveal_accounts(client, patient):
    known = client.post("/auth/forgot-password", json={"email": patient.email})
    unknown = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
