# /smart-lms-backend/app/seed.py

"""
Seeds the database with the initial admin account and a small set of demo
reference data (one batch, one approved lecturer and one subject).

Usage: `python -m app.seed`. Running it again is harmless; existing rows are
left untouched.
"""

import logging
import uuid

from app.core import config
from app.core.logging_config import setup_logging
from app.db.base import Base
from app.db.database import engine, SessionLocal
from app.services.database_service import DatabaseService
from app.services import user_service
from app.models.user_model import UserRole, UserStatus

logger = logging.getLogger("app.seed")

DEMO_BATCH = {"name": "Computer Science 2025", "code": "CS-2025", "year": 2025, "department_id": "dep_cs", "course_id": "crs_bsc_cs"}
DEMO_LECTURER = {"email": "lecturer@smartlms.com", "password": "lecturer123", "first_name": "Demo", "last_name": "Lecturer"}
DEMO_SUBJECT = {"name": "Data Structures", "code": "CS201", "semester_id": "sem_2"}


def seed_admin(db: DatabaseService):
    existing = db.get_user_by_email(config.ADMIN_EMAIL)
    if existing is not None:
        logger.info(f"Admin {config.ADMIN_EMAIL} already exists")
        return existing
    return user_service.create_admin(db, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)


def seed_demo_data(db: DatabaseService) -> None:
    if db.get_batch_by_code(DEMO_BATCH["code"]) is not None:
        logger.info("Demo reference data already present")
        return

    batch = db.add_batch({"id": f"bat_{uuid.uuid4().hex[:12]}", **DEMO_BATCH})

    lecturer = db.get_user_by_email(DEMO_LECTURER["email"])
    if lecturer is None:
        lecturer = user_service.create_user(
            db,
            {**DEMO_LECTURER, "teacher_id": "T-001", "department_id": batch.department_id},
            UserRole.TEACHER,
            status=UserStatus.APPROVED,
        )

    db.add_subject({
        "id": f"sub_{uuid.uuid4().hex[:12]}",
        **DEMO_SUBJECT,
        "lecturer_id": lecturer.id,
        "batch_id": batch.id,
        "department_id": batch.department_id,
        "course_id": batch.course_id,
    })
    logger.info(f"Seeded demo batch {batch.code} with lecturer {lecturer.email}")


def main() -> None:
    setup_logging()
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        db = DatabaseService(db_session=session)
        seed_admin(db)
        seed_demo_data(db)
    finally:
        session.close()


if __name__ == "__main__":
    main()
