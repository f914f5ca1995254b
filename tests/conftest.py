import os
from datetime import date, timedelta

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.database import Base, get_db
from app.domain.notifications.dispatcher import NotificationDispatcher, get_notification_dispatcher
from app.errors import UploadError
from app.main import app
from app.models import AuthUser, Doctor, EmailTemplate, Profile
from app.email_templates import DEFAULT_EMAIL_TEMPLATES
from app.security_utils import create_access_token, hash_password
from app.utils.object_storage import ObjectStorage, get_object_storage

TEST_PASSWORD = "secret123"


class RecordingDispatcher(NotificationDispatcher):
    def __init__(self):
        self.sent = []

    def dispatch(self, template_name, recipient_email, variables=None):
        self.sent.append((template_name, recipient_email, dict(variables or {})))


class FailingDispatcher(NotificationDispatcher):
    def dispatch(self, template_name, recipient_email, variables=None):
        raise RuntimeError("mail provider down")


class RecordingStorage(ObjectStorage):
    def __init__(self, fail: bool = False):
        super().__init__(client=object(), bucket="test-bucket", public_base_url="https://files.test")
        self.fail = fail
        self.stored = {}

    def store(self, data, content_type, key):
        if self.fail:
            raise UploadError("Failed to upload document", status_code=502)
        self.stored[key] = (data, content_type)
        return self.url_for(key)


class Clock:
    """Settable stand-in for datetime.utcnow"""

    def __init__(self, current):
        self.current = current

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def client(session_factory, dispatcher, storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_object_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_profile(db, email, role="patient", full_name=None, password=TEST_PASSWORD, **fields):
    profile = Profile(email=email, full_name=full_name or email.split("@")[0].title(), role=role, **fields)
    db.add(profile)
    db.flush()
    db.add(AuthUser(id=profile.id, email=email, password_hash=hash_password(password)))
    db.commit()
    db.refresh(profile)
    return profile


def make_doctor(db, full_name="Ada Lovelace", available=True, **fields):
    values = {
        "specialization": "Cardiology",
        "email": f"{full_name.split()[0].lower()}@clinic.test",
        "phone": "5551234567",
        "license_number": "LIC-001",
        "years_of_experience": 10,
        "consultation_fee": 100.0,
    }
    values.update(fields)
    doctor = Doctor(full_name=full_name, available=available, **values)
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


def auth_headers(profile):
    return {"Authorization": f"Bearer {create_access_token(profile.id, profile.role)}"}


@pytest.fixture
def admin(db_session):
    return make_profile(db_session, "admin@clinic.test", role="admin", full_name="Grace Admin")


@pytest.fixture
def patient(db_session):
    return make_profile(db_session, "pat@example.com", full_name="Pat Patient")


@pytest.fixture
def other_patient(db_session):
    return make_profile(db_session, "sam@example.com", full_name="Sam Other")


@pytest.fixture
def doctor(db_session):
    return make_doctor(db_session)


@pytest.fixture
def templates(db_session):
    for template in DEFAULT_EMAIL_TEMPLATES:
        db_session.add(EmailTemplate(**template))
    db_session.commit()


@pytest.fixture
def next_week():
    return date.today() + timedelta(days=7)
