# /tests/test_attendance_api.py

from datetime import datetime, timedelta, timezone

import pytest

from app.core.timeutils import utcnow
from app.services import attendance_service


@pytest.fixture
def live_meeting(make_meeting):
    return make_meeting(status="ongoing")


def join(client, meeting_id, headers):
    return client.post("/api/attendance/join", json={"meeting_id": meeting_id}, headers=headers)


def leave(client, meeting_id, headers):
    return client.post("/api/attendance/leave", json={"meeting_id": meeting_id}, headers=headers)


# --- Join / Leave ---

def test_full_meeting_flow_finalizes_attendance(client, db_session, db, teacher, student, other_student, make_meeting, auth_headers):
    """Start, join, double join, leave, rejoin, end: sessions are closed and the no-show is marked absent."""
    meeting = make_meeting()
    assert client.post(f"/api/meetings/{meeting.id}/start", headers=auth_headers(teacher)).status_code == 200

    response = join(client, meeting.id, auth_headers(student))
    assert response.status_code == 200
    assert response.json()["session_count"] == 1
    assert response.json()["is_late"] is False
    assert response.json()["status"] == "present"

    response = join(client, meeting.id, auth_headers(student))
    assert response.status_code == 400
    assert "already" in response.json()["detail"]

    response = leave(client, meeting.id, auth_headers(student))
    assert response.status_code == 200
    assert response.json()["status"] == "partial"

    assert join(client, meeting.id, auth_headers(student)).json()["session_count"] == 2

    response = client.post(f"/api/meetings/{meeting.id}/end", headers=auth_headers(teacher))
    assert response.status_code == 200
    assert response.json()["attendance"] == {"closed_sessions": 1, "absent_marked": 1, "total_records": 2}

    db_session.expire_all()
    attended = db.get_attendance(meeting.id, student.id)
    assert attended.is_currently_present is False
    assert attended.rejoin_count == 1
    assert len(attended.sessions) == 2
    assert all(not s.is_active for s in attended.sessions)
    assert attended.total_duration == sum(s.duration for s in attended.sessions)

    no_show = db.get_attendance(meeting.id, other_student.id)
    assert no_show.status == "absent"
    assert no_show.sessions == []


def test_late_join_is_flagged(client, student, make_meeting, auth_headers):
    meeting = make_meeting(status="ongoing", starts_in=timedelta(minutes=-20))

    response = join(client, meeting.id, auth_headers(student))

    assert response.json()["is_late"] is True
    assert response.json()["status"] == "late"


def test_joining_a_meeting_that_is_not_ongoing_is_rejected(client, student, make_meeting, auth_headers):
    meeting = make_meeting(status="scheduled")
    response = join(client, meeting.id, auth_headers(student))
    assert response.status_code == 400


def test_joining_unknown_meeting_is_404(client, student, auth_headers):
    assert join(client, "mtg_missing", auth_headers(student)).status_code == 404


def test_only_students_record_attendance(client, teacher, live_meeting, auth_headers):
    assert join(client, live_meeting.id, auth_headers(teacher)).status_code == 403


def test_leave_without_record_is_404_and_without_session_is_400(client, student, live_meeting, auth_headers):
    assert leave(client, live_meeting.id, auth_headers(student)).status_code == 404

    join(client, live_meeting.id, auth_headers(student))
    assert leave(client, live_meeting.id, auth_headers(student)).status_code == 200
    assert leave(client, live_meeting.id, auth_headers(student)).status_code == 400


# --- Reading Attendance ---

def test_lecturer_reads_meeting_attendance(client, db, teacher, student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get(f"/api/attendance/meeting/{live_meeting.id}", headers=auth_headers(teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["statistics"]["total"] == 1
    assert body["statistics"]["present_count"] == 1
    assert body["attendances"][0]["student_id"] == student.id
    assert body["attendances"][0]["is_currently_present"] is True
    assert body["meeting"]["duration"] == 3600


def test_meeting_attendance_is_restricted_to_its_lecturer_and_admins(client, other_teacher, admin, student, live_meeting, auth_headers):
    url = f"/api/attendance/meeting/{live_meeting.id}"
    assert client.get(url, headers=auth_headers(other_teacher)).status_code == 403
    assert client.get(url, headers=auth_headers(student)).status_code == 403
    assert client.get(url, headers=auth_headers(admin)).status_code == 200


def test_student_reads_only_their_own_history(client, db, student, other_student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get(f"/api/attendance/student/{student.id}", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert response.json()["statistics"]["total"] == 1

    response = client.get(f"/api/attendance/student/{student.id}", headers=auth_headers(other_student))
    assert response.status_code == 403


def test_history_of_unknown_student_is_404(client, teacher, auth_headers):
    assert client.get("/api/attendance/student/usr_missing", headers=auth_headers(teacher)).status_code == 404


def test_attendance_details_and_notes(client, db, teacher, student, other_student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)
    record = db.get_attendance(live_meeting.id, student.id)

    response = client.get(f"/api/attendance/{record.id}/details", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["student"]["roll_number"] == "R001"
    assert len(response.json()["attendance"]["sessions"]) == 1

    assert client.get(f"/api/attendance/{record.id}/details", headers=auth_headers(other_student)).status_code == 403

    response = client.put(f"/api/attendance/{record.id}/notes", json={"notes": "Camera off"}, headers=auth_headers(teacher))
    assert response.status_code == 200
    assert response.json()["notes"] == "Camera off"


def test_manual_finalize(client, teacher, student, other_student, live_meeting, db, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.post(f"/api/attendance/meeting/{live_meeting.id}/finalize", headers=auth_headers(teacher))

    assert response.status_code == 200
    assert response.json()["closed_sessions"] == 1
    assert response.json()["absent_marked"] == 1
    assert response.json()["total_records"] == 2


def test_admin_overview_is_admin_only(client, admin, teacher, db, student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get("/api/attendance/admin/overview", params={"batch_id": "bat_test"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert response.json()["overview"][0]["attendance"]["present_count"] == 1

    assert client.get("/api/attendance/admin/overview", headers=auth_headers(teacher)).status_code == 403



# --- Date Windows ---

PLUS_FIVE = timezone(timedelta(hours=5))


def at_plus_five(value):
    """The same instant as a client five hours east of UTC would send it."""
    return value.astimezone(PLUS_FIVE).isoformat()


@pytest.fixture
def old_and_recent(db, student, make_meeting):
    """A meeting ten days ago and one happening now, both attended by `student`."""
    old_meeting = make_meeting(status="ongoing", starts_in=timedelta(days=-10))
    recent_meeting = make_meeting(status="ongoing")
    attendance_service.join_meeting(old_meeting.id, student, db)
    attendance_service.join_meeting(recent_meeting.id, student, db)

    old = db.get_attendance(old_meeting.id, student.id)
    old.created_at = utcnow() - timedelta(days=10)
    db.save_attendance(old)
    return old_meeting, recent_meeting


def test_student_history_window_with_offset(client, student, old_and_recent, auth_headers):
    _, recent_meeting = old_and_recent
    params = {"start_date": at_plus_five(utcnow() - timedelta(hours=2))}

    response = client.get(f"/api/attendance/student/{student.id}", params=params, headers=auth_headers(student))

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert [a["meeting_id"] for a in body["attendances"]] == [recent_meeting.id]
    assert body["statistics"]["total"] == 2


def test_student_history_window_without_offset_is_utc(client, student, old_and_recent, auth_headers):
    old_meeting, _ = old_and_recent
    end = (utcnow() - timedelta(days=1)).replace(tzinfo=None)

    response = client.get(
        f"/api/attendance/student/{student.id}", params={"end_date": end.isoformat()}, headers=auth_headers(student)
    )

    assert [a["meeting_id"] for a in response.json()["attendances"]] == [old_meeting.id]


def test_student_report_window_with_offset(client, student, old_and_recent, auth_headers):
    old_meeting, _ = old_and_recent
    end = utcnow() - timedelta(days=1)

    response = client.get(
        f"/api/attendance/reports/student/{student.id}", params={"end_date": at_plus_five(end)}, headers=auth_headers(student)
    )

    assert response.status_code == 200
    body = response.json()
    assert [a["meeting"]["id"] for a in body["attendances"]] == [old_meeting.id]
    reported_end = datetime.fromisoformat(body["period"]["end_date"].replace("Z", "+00:00"))
    assert reported_end == end
    assert reported_end.utcoffset() == timedelta(0)


def test_admin_overview_window_with_offset(client, admin, old_and_recent, auth_headers):
    _, recent_meeting = old_and_recent
    params = {"batch_id": "bat_test", "start_date": at_plus_five(utcnow() - timedelta(hours=2))}

    response = client.get("/api/attendance/admin/overview", params=params, headers=auth_headers(admin))

    assert response.status_code == 200
    assert [o["meeting"]["id"] for o in response.json()["overview"]] == [recent_meeting.id]


def test_batch_overview_window_with_offset(client, teacher, old_and_recent, auth_headers):
    old_meeting, _ = old_and_recent
    params = {
        "start_date": at_plus_five(utcnow() - timedelta(days=11)),
        "end_date": at_plus_five(utcnow() - timedelta(days=9)),
    }

    response = client.get("/api/attendance/reports/batch/bat_test", params=params, headers=auth_headers(teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["statistics"]["total_meetings"] == 1
    assert [m["id"] for m in body["meetings"]] == [old_meeting.id]
    assert body["meetings"][0]["attendance_count"] == 1


# --- Reports / Export ---

def test_csv_export(client, db, teacher, student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get(f"/api/attendance/export/meeting/{live_meeting.id}/csv", headers=auth_headers(teacher))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert f"attendance-{live_meeting.id}.csv" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith('"Student Name"')
    assert '"Sam Tester"' in lines[1]
    assert len(lines) == 2


def test_csv_export_requires_lecturer(client, other_teacher, live_meeting, auth_headers):
    url = f"/api/attendance/export/meeting/{live_meeting.id}/csv"
    assert client.get(url, headers=auth_headers(other_teacher)).status_code == 403


def test_meeting_report(client, db, teacher, student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get(f"/api/attendance/reports/meeting/{live_meeting.id}", headers=auth_headers(teacher))

    assert response.status_code == 200
    row = response.json()["attendances"][0]
    assert row["student"]["roll_number"] == "R001"
    assert row["session_count"] == 1


def test_student_report_is_private(client, db, student, other_student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get(f"/api/attendance/reports/student/{student.id}", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["statistics"]["total"] == 1

    assert client.get(f"/api/attendance/reports/student/{student.id}", headers=auth_headers(other_student)).status_code == 403


def test_batch_report(client, db, teacher, student, other_student, live_meeting, auth_headers):
    attendance_service.join_meeting(live_meeting.id, student, db)

    response = client.get("/api/attendance/reports/batch/bat_test", headers=auth_headers(teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["statistics"] == {"total_meetings": 1, "total_students": 2, "overall_attendance_rate": 50.0}
    rates = {row["student"]["id"]: row["attendance_rate"] for row in body["student_overview"]}
    assert rates == {student.id: 100.0, other_student.id: 0.0}

    assert client.get("/api/attendance/reports/batch/bat_missing", headers=auth_headers(teacher)).status_code == 404
