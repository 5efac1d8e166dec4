# /tests/conftest.py

import os

# Cheap hashing for tests; must be set before the app's config module is imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import security
from app.core.timeutils import utcnow
from app.db.base import Base
from app.db.database import get_db
from app.main import app
from app.models.user_model import UserRole, UserStatus
from app.services import user_service
from app.services.database_service import DatabaseService

TEST_PASSWORD = "secret123"


@pytest.fixture
def engine():
    """A fresh in-memory SQLite database per test, shared by every session through one connection."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def db(db_session):
    """The DatabaseService the tests use to arrange data and inspect results."""
    return DatabaseService(db_session=db_session)


@pytest.fixture
def client(session_factory):
    """A TestClient whose requests use the in-memory database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Data Factories ---

@pytest.fixture
def make_user(db):
    def _make_user(role: UserRole, status: UserStatus = UserStatus.APPROVED, **extra):
        data = {
            "email": f"{role.value}-{uuid.uuid4().hex[:6]}@example.com",
            "password": TEST_PASSWORD,
            "first_name": extra.pop("first_name", role.value.title()),
            "last_name": extra.pop("last_name", "Tester"),
            **extra,
        }
        return user_service.create_user(db, data, role, status=status)

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user) -> dict:
        return {"Authorization": f"Bearer {security.create_access_token(subject=user.id)}"}

    return _auth_headers


@pytest.fixture
def batch(db):
    return db.add_batch({
        "id": "bat_test",
        "name": "Test Batch",
        "code": "TB-1",
        "year": 2025,
        "department_id": "dep_1",
        "course_id": "crs_1",
    })


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, first_name="Ada")


@pytest.fixture
def teacher(make_user):
    return make_user(UserRole.TEACHER, first_name="Tom", teacher_id="T-1")


@pytest.fixture
def other_teacher(make_user):
    return make_user(UserRole.TEACHER, first_name="Olga", teacher_id="T-2")


@pytest.fixture
def student(make_user, batch):
    return make_user(UserRole.STUDENT, first_name="Sam", student_id="S-1", roll_number="R001", batch_id=batch.id, semester_id="sem_1")


@pytest.fixture
def other_student(make_user, batch):
    return make_user(UserRole.STUDENT, first_name="Nia", student_id="S-2", roll_number="R002", batch_id=batch.id, semester_id="sem_1")


@pytest.fixture
def subject(db, batch, teacher):
    return db.add_subject({
        "id": "sub_test",
        "name": "Algorithms",
        "code": "CS301",
        "lecturer_id": teacher.id,
        "batch_id": batch.id,
        "semester_id": "sem_1",
        "department_id": batch.department_id,
        "course_id": batch.course_id,
    })


@pytest.fixture
def make_meeting(db, subject):
    def _make_meeting(status: str = "scheduled", starts_in: timedelta = timedelta(minutes=-1), length: timedelta = timedelta(hours=1)):
        start = utcnow() + starts_in
        record = {
            "id": f"mtg_{uuid.uuid4().hex[:12]}",
            "topic": "Graph Traversal",
            "subject_id": subject.id,
            "lecturer_id": subject.lecturer_id,
            "department_id": subject.department_id,
            "course_id": subject.course_id,
            "batch_id": subject.batch_id,
            "semester_id": subject.semester_id,
            "scheduled_start": start,
            "scheduled_end": start + length,
            "status": status,
            "is_active": True,
        }
        if status in ("ongoing", "completed"):
            record["started_at"] = start
        return db.add_meeting(record)

    return _make_meeting
