# /tests/test_emotions_api.py

from datetime import timedelta

import pytest

from app.core.timeutils import utcnow
from app.models.emotion_model import EmotionSampleCreate
from app.services import emotion_service


@pytest.fixture
def live_meeting(make_meeting):
    return make_meeting(status="ongoing")


def record(db, meeting, student, minutes_ago=0, **fields):
    sample = EmotionSampleCreate.model_validate(fields)
    return emotion_service.record_emotion(meeting.id, student, sample, db, now=utcnow() - timedelta(minutes=minutes_ago))


# --- Submission ---

def test_student_submits_sample_over_http(client, student, live_meeting, auth_headers):
    payload = {"emotions": {"happy": 0.7, "neutral": 0.3}, "dominant_emotion": "happy", "face_detected": True, "confidence": 0.85}

    response = client.post(f"/api/emotions/meetings/{live_meeting.id}/emotions", json=payload, headers=auth_headers(student))

    assert response.status_code == 201
    body = response.json()
    assert body["id"].startswith("emo_")
    assert body["student_id"] == student.id
    assert body["happy"] == 0.7
    assert body["attentiveness"] == 0.85
    assert body["detection_confidence"] == 0.85


def test_sample_without_face_has_zero_attentiveness(client, student, live_meeting, auth_headers):
    payload = {"dominant_emotion": "unknown", "face_detected": False, "confidence": 0.9}
    response = client.post(f"/api/emotions/meetings/{live_meeting.id}/emotions", json=payload, headers=auth_headers(student))
    assert response.json()["attentiveness"] == 0.0


def test_out_of_range_scores_are_rejected(client, student, live_meeting, auth_headers):
    payload = {"emotions": {"happy": 1.5}}
    response = client.post(f"/api/emotions/meetings/{live_meeting.id}/emotions", json=payload, headers=auth_headers(student))
    assert response.status_code == 422


def test_teachers_cannot_submit_samples(client, teacher, live_meeting, auth_headers):
    response = client.post(f"/api/emotions/meetings/{live_meeting.id}/emotions", json={}, headers=auth_headers(teacher))
    assert response.status_code == 403


def test_sample_for_unknown_meeting_is_404(client, student, auth_headers):
    response = client.post("/api/emotions/meetings/mtg_missing/emotions", json={}, headers=auth_headers(student))
    assert response.status_code == 404


# --- Summary ---

def test_summary_without_data_is_404(client, teacher, live_meeting, auth_headers):
    response = client.get(f"/api/emotions/meetings/{live_meeting.id}/summary", headers=auth_headers(teacher))
    assert response.status_code == 404
    assert response.json()["detail"] == "No emotion data found for this meeting"


def test_summary_aggregates_samples(client, db, teacher, student, other_student, live_meeting, auth_headers):
    record(db, live_meeting, student, emotions={"happy": 1.0}, face_detected=True, confidence=0.8)
    record(db, live_meeting, other_student, emotions={"sad": 0.5}, face_detected=True, confidence=0.4)

    response = client.get(f"/api/emotions/meetings/{live_meeting.id}/summary", headers=auth_headers(teacher))

    assert response.status_code == 200
    assert response.json() == {
        "meeting_id": live_meeting.id,
        "avg_happiness": 50,
        "avg_sadness": 25,
        "avg_anger": 0,
        "avg_neutral": 0,
        "avg_engagement": 60,
        "total_records": 2,
        "unique_students": 2,
    }


def test_summary_is_restricted_to_the_lecturer(client, other_teacher, student, live_meeting, auth_headers):
    url = f"/api/emotions/meetings/{live_meeting.id}/summary"
    assert client.get(url, headers=auth_headers(other_teacher)).status_code == 403
    assert client.get(url, headers=auth_headers(student)).status_code == 403


def test_update_summary_stores_it_on_the_meeting(client, db_session, db, teacher, student, live_meeting, auth_headers):
    record(db, live_meeting, student, emotions={"happy": 0.6}, face_detected=True, confidence=0.9)

    response = client.post(f"/api/emotions/meetings/{live_meeting.id}/update-summary", headers=auth_headers(teacher))

    assert response.status_code == 200
    assert response.json()["emotion_summary"]["avg_happiness"] == 60
    db_session.expire_all()
    stored = db.get_meeting_by_id(live_meeting.id).emotion_summary
    assert stored["avg_engagement"] == 90
    assert stored["participants_tracked"] == 1


# --- Timeline ---

def test_timeline_is_ordered_and_private(client, db, teacher, student, other_student, live_meeting, auth_headers):
    record(db, live_meeting, student, minutes_ago=3, dominant_emotion="sad")
    record(db, live_meeting, student, minutes_ago=1, dominant_emotion="happy")
    url = f"/api/emotions/meetings/{live_meeting.id}/students/{student.id}/timeline"

    response = client.get(url, headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["total_records"] == 2
    assert [s["dominant_emotion"] for s in response.json()["timeline"]] == ["sad", "happy"]

    assert client.get(url, headers=auth_headers(teacher)).status_code == 200
    assert client.get(url, headers=auth_headers(other_student)).status_code == 403


# --- Alerts / Engagement ---

def test_alerts_only_consider_recent_samples(client, db, teacher, student, other_student, live_meeting, auth_headers):
    # Old negative samples fall outside the window.
    record(db, live_meeting, other_student, minutes_ago=30, dominant_emotion="angry", emotions={"angry": 0.9})
    record(db, live_meeting, other_student, minutes_ago=29, dominant_emotion="angry", emotions={"angry": 0.9})
    record(db, live_meeting, student, minutes_ago=2, dominant_emotion="sad", emotions={"sad": 0.8}, face_detected=True, confidence=0.3)
    record(db, live_meeting, student, minutes_ago=1, dominant_emotion="sad", emotions={"sad": 0.6}, face_detected=True, confidence=0.2)

    response = client.get(f"/api/emotions/meetings/{live_meeting.id}/alerts", headers=auth_headers(teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["total_alerts"] == 2
    assert [a["student_id"] for a in body["negative_emotions"]] == [student.id]
    assert body["negative_emotions"][0]["student_name"] == "Sam Tester"
    assert body["negative_emotions"][0]["avg_sad"] == 70
    assert [a["student_id"] for a in body["low_attentiveness"]] == [student.id]


def test_engagement_classifies_students_by_latest_sample(client, db, teacher, student, other_student, live_meeting, auth_headers):
    record(db, live_meeting, student, minutes_ago=1.5, face_detected=True, confidence=0.2)
    record(db, live_meeting, student, minutes_ago=0.5, face_detected=True, confidence=0.9)
    record(db, live_meeting, other_student, minutes_ago=1, face_detected=False, confidence=0.9)
    record(db, live_meeting, other_student, minutes_ago=10, face_detected=True, confidence=1.0)

    response = client.get(f"/api/emotions/meetings/{live_meeting.id}/engagement", headers=auth_headers(teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["total_students"] == 2
    assert body["engaged"] == 1
    assert body["disengaged"] == 1
    assert body["avg_engagement"] == 45


# --- Pagination ---

def test_all_samples_are_paginated(client, db, teacher, student, live_meeting, auth_headers):
    for minutes_ago in range(5):
        record(db, live_meeting, student, minutes_ago=minutes_ago)

    response = client.get(
        f"/api/emotions/meetings/{live_meeting.id}/all", params={"page": 2, "limit": 2}, headers=auth_headers(teacher)
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body["emotions"]) == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}


def test_pagination_parameters_are_validated(client, teacher, live_meeting, auth_headers):
    url = f"/api/emotions/meetings/{live_meeting.id}/all"
    assert client.get(url, params={"page": 0}, headers=auth_headers(teacher)).status_code == 422
    assert client.get(url, params={"limit": 501}, headers=auth_headers(teacher)).status_code == 422
