# /smart-lms-backend/app/services/emotion_service.py

"""
Business logic for engagement tracking. Emotion samples are classified in the
student's browser and arrive here either over the real-time channel or via
the HTTP fallback; this service stores them and serves the aggregates that
`emotion_helpers.engagement_analytics` computes.
"""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

from app.core import config
from app.core.timeutils import utcnow
from ..models import emotion_model
from ..models.user_model import UserRole
from .database_service import DatabaseService
from .attendance_service import ensure_can_manage_meeting, ensure_can_read_student
from .emotion_helpers import engagement_analytics

logger = logging.getLogger(__name__)


def _get_managed_meeting(meeting_id: str, user, db: DatabaseService):
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is not None:
        ensure_can_manage_meeting(meeting, user)
    return meeting


def _students_by_id(samples, db: DatabaseService) -> Dict:
    return {s.id: s for s in db.get_users_by_ids(list({e.student_id for e in samples}))}


def record_emotion(
    meeting_id: str,
    student,
    sample: emotion_model.EmotionSampleCreate,
    db: DatabaseService,
    now: Optional[datetime] = None,
):
    """Stores one sample for the calling student. Returns None when the meeting does not exist."""
    if student.role != UserRole.STUDENT.value:
        raise PermissionError("Only students can submit emotion data.")
    if db.get_meeting_by_id(meeting_id) is None:
        return None

    record = {
        "id": f"emo_{uuid.uuid4().hex[:12]}",
        "meeting_id": meeting_id,
        "student_id": student.id,
        "timestamp": now or utcnow(),
        **sample.emotions.model_dump(),
        "dominant_emotion": sample.dominant_emotion.value,
        "face_detected": sample.face_detected,
        "detection_confidence": sample.confidence,
        "attentiveness": engagement_analytics.attentiveness_for(sample.face_detected, sample.confidence),
        "is_present": True,
        "session_id": sample.session_id,
    }
    return db.add_emotion(record)


def get_meeting_summary(meeting_id: str, user, db: DatabaseService) -> Optional[Dict]:
    if _get_managed_meeting(meeting_id, user, db) is None:
        return None
    summary = engagement_analytics.summarize_meeting(db.get_emotions_for_meeting(meeting_id))
    if summary is None:
        return None
    return {"meeting_id": meeting_id, **summary}


def get_student_timeline(meeting_id: str, student_id: str, user, db: DatabaseService) -> Optional[Dict]:
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    if user.role == UserRole.STUDENT.value:
        ensure_can_read_student(student_id, user)
    else:
        ensure_can_manage_meeting(meeting, user)

    timeline = db.get_student_timeline(meeting_id, student_id)
    return {
        "meeting_id": meeting_id,
        "student_id": student_id,
        "timeline": timeline,
        "total_records": len(timeline),
    }


def get_alerts(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    if _get_managed_meeting(meeting_id, user, db) is None:
        return None

    since = (now or utcnow()) - timedelta(minutes=config.ALERT_WINDOW_MINUTES)
    samples = db.get_emotions_for_meeting(meeting_id, since=since)
    alerts = engagement_analytics.find_alerts(samples, _students_by_id(samples, db))
    return {
        "meeting_id": meeting_id,
        **alerts,
        "total_alerts": len(alerts["negative_emotions"]) + len(alerts["low_attentiveness"]),
    }


def get_current_engagement(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    if _get_managed_meeting(meeting_id, user, db) is None:
        return None

    since = (now or utcnow()) - timedelta(minutes=config.ENGAGEMENT_WINDOW_MINUTES)
    samples = db.get_emotions_for_meeting(meeting_id, since=since)
    engagement = engagement_analytics.current_engagement(samples, _students_by_id(samples, db))
    return {"meeting_id": meeting_id, **engagement}


def list_emotions(meeting_id: str, user, db: DatabaseService, page: int = 1, limit: int = 50) -> Optional[Dict]:
    if _get_managed_meeting(meeting_id, user, db) is None:
        return None

    items, total = db.get_emotion_page(meeting_id, page, limit)
    return {
        "emotions": items,
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


def update_meeting_summary(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    """Stores the current summary on the meeting. Returns None when there is no meeting or no data."""
    if _get_managed_meeting(meeting_id, user, db) is None:
        return None
    summary = engagement_analytics.summarize_meeting(db.get_emotions_for_meeting(meeting_id))
    if summary is None:
        return None

    emotion_summary = {
        "avg_happiness": summary["avg_happiness"],
        "avg_engagement": summary["avg_engagement"],
        "participants_tracked": summary["unique_students"],
        "last_updated": (now or utcnow()).isoformat(),
    }
    db.update_meeting(meeting_id, {"emotion_summary": emotion_summary})
    logger.info(f"Stored emotion summary for meeting {meeting_id}")
    return emotion_summary
