# /smart-lms-backend/app/services/emotion_helpers/engagement_analytics.py

"""
This module contains the specialist helpers that aggregate facial-expression
samples into engagement figures for the lecturer's dashboard.

Like the attendance helpers they are pure: the `emotion_service` fetches the
samples (already windowed by time and sorted oldest first) and passes them in.
Aggregation is done with pandas.
"""

from typing import List, Dict, Optional

import pandas as pd

from app.core import config
from app.core.timeutils import ensure_utc

EMOTION_FIELDS = ["happy", "sad", "angry", "surprised", "fearful", "disgusted", "neutral"]
NEGATIVE_EMOTIONS = ["sad", "angry", "fearful"]
NEGATIVE_THRESHOLD = 0.5
LOW_ATTENTIVENESS_THRESHOLD = 0.5
MIN_ALERT_SAMPLES = 2


# --- PURE UTILITY FUNCTIONS ---

def attentiveness_for(face_detected: bool, confidence: float) -> float:
    """A sample without a detected face counts as not attentive at all."""
    return float(confidence or 0.0) if face_detected else 0.0


def as_percent(value: float) -> int:
    return int(round(float(value) * 100))


def samples_to_frame(samples: List['StudentEmotion']) -> pd.DataFrame:
    columns = ["student_id", "timestamp", "dominant_emotion", "attentiveness"] + EMOTION_FIELDS
    rows = [{column: getattr(s, column) for column in columns} for s in samples]
    return pd.DataFrame(rows, columns=columns)


def _student_name(students_by_id: Dict[str, 'User'], student_id: str) -> str:
    student = students_by_id.get(student_id)
    return f"{student.first_name} {student.last_name}" if student else "Unknown"


# --- AGGREGATIONS ---

def summarize_meeting(samples: List['StudentEmotion']) -> Optional[Dict]:
    """
    Meeting-wide averages as rounded percentages. Returns None when there are
    no samples at all.
    """
    df = samples_to_frame(samples)
    if df.empty:
        return None

    return {
        "avg_happiness": as_percent(df["happy"].mean()),
        "avg_sadness": as_percent(df["sad"].mean()),
        "avg_anger": as_percent(df["angry"].mean()),
        "avg_neutral": as_percent(df["neutral"].mean()),
        "avg_engagement": as_percent(df["attentiveness"].mean()),
        "total_records": int(len(df)),
        "unique_students": int(df["student_id"].nunique()),
    }


def find_alerts(samples: List['StudentEmotion'], students_by_id: Dict[str, 'User']) -> Dict:
    """
    Students who repeatedly showed a negative emotion (sad, angry or fearful at
    or above 0.5) and students who were repeatedly inattentive (attentiveness at
    or below 0.5). "Repeatedly" means at least two samples in the window.
    """
    df = samples_to_frame(samples)
    if df.empty:
        return {"negative_emotions": [], "low_attentiveness": []}

    negative_mask = (df[NEGATIVE_EMOTIONS] >= NEGATIVE_THRESHOLD).any(axis=1)
    negative = (
        df[negative_mask]
        .groupby("student_id", sort=False)
        .agg(
            count=("sad", "size"),
            avg_sad=("sad", "mean"),
            avg_angry=("angry", "mean"),
            last_emotion=("dominant_emotion", "last"),
        )
    )
    negative = negative[negative["count"] >= MIN_ALERT_SAMPLES]

    inattentive = (
        df[df["attentiveness"] <= LOW_ATTENTIVENESS_THRESHOLD]
        .groupby("student_id", sort=False)
        .agg(count=("attentiveness", "size"), avg_attentiveness=("attentiveness", "mean"))
    )
    inattentive = inattentive[inattentive["count"] >= MIN_ALERT_SAMPLES]

    return {
        "negative_emotions": [
            {
                "student_id": student_id,
                "student_name": _student_name(students_by_id, student_id),
                "count": int(row["count"]),
                "avg_sad": as_percent(row["avg_sad"]),
                "avg_angry": as_percent(row["avg_angry"]),
                "last_emotion": row["last_emotion"],
            }
            for student_id, row in negative.iterrows()
        ],
        "low_attentiveness": [
            {
                "student_id": student_id,
                "student_name": _student_name(students_by_id, student_id),
                "count": int(row["count"]),
                "avg_attentiveness": as_percent(row["avg_attentiveness"]),
            }
            for student_id, row in inattentive.iterrows()
        ],
    }


def current_engagement(
    samples: List['StudentEmotion'],
    students_by_id: Dict[str, 'User'],
    engaged_threshold: float = config.ENGAGED_THRESHOLD,
) -> Dict:
    """Classifies every student by their latest sample in the window."""
    df = samples_to_frame(samples)
    if df.empty:
        return {"total_students": 0, "engaged": 0, "disengaged": 0, "avg_engagement": 0, "students": []}

    latest = df.groupby("student_id", sort=False).last()
    total = int(len(latest))
    engaged = int((latest["attentiveness"] >= engaged_threshold).sum())

    students = []
    for student_id, row in latest.iterrows():
        student = students_by_id.get(student_id)
        students.append({
            "student_id": student_id,
            "student_name": _student_name(students_by_id, student_id),
            "email": student.email if student else None,
            "attentiveness": as_percent(row["attentiveness"]),
            "emotion": row["dominant_emotion"],
            "last_update": ensure_utc(pd.Timestamp(row["timestamp"]).to_pydatetime()),
        })

    return {
        "total_students": total,
        "engaged": engaged,
        "disengaged": total - engaged,
        "avg_engagement": as_percent(latest["attentiveness"].mean()),
        "students": students,
    }
