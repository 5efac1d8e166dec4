# /smart-lms-backend/app/routers/attendance_router.py

from datetime import datetime
from typing import Optional, Dict, Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from ..models import attendance_model
from ..services import attendance_service, database_service
from ..services.realtime_service import manager, EventType
from ..core.deps import get_current_active_user, get_current_admin, get_current_staff, get_current_student
from ..db.models.user_model import User as UserModel

router = APIRouter()

MEETING_NOT_FOUND = "Meeting not found"


# --- JOIN / LEAVE ENDPOINTS ---

@router.post("/join", response_model=attendance_model.JoinResponse, summary="Record Joining a Meeting")
def join_meeting(
    action: attendance_model.AttendanceAction,
    background_tasks: BackgroundTasks,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_student),
):
    try:
        result = attendance_service.join_meeting(action.meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MEETING_NOT_FOUND)

    background_tasks.add_task(manager.broadcast, action.meeting_id, EventType.ATTENDANCE_RECORDED, result)
    return result


@router.post("/leave", response_model=attendance_model.LeaveResponse, summary="Record Leaving a Meeting")
def leave_meeting(
    action: attendance_model.AttendanceAction,
    background_tasks: BackgroundTasks,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_student),
):
    try:
        result = attendance_service.leave_meeting(action.meeting_id, current_user, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting or attendance record not found")

    background_tasks.add_task(manager.broadcast, action.meeting_id, EventType.ATTENDANCE_LEFT, result)
    return result


# --- LISTING ENDPOINTS ---

@router.get("/meeting/{meeting_id}", response_model=attendance_model.MeetingAttendanceResponse, summary="Get Attendance of a Meeting")
def get_meeting_attendance(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        result = attendance_service.get_meeting_attendance(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MEETING_NOT_FOUND)
    return result


@router.post("/meeting/{meeting_id}/finalize", response_model=attendance_model.FinalizeResponse, summary="Finalize Attendance of a Meeting")
def finalize_meeting_attendance(
    meeting_id: str,
    background_tasks: BackgroundTasks,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        result = attendance_service.finalize_meeting(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MEETING_NOT_FOUND)

    background_tasks.add_task(manager.broadcast, meeting_id, EventType.ATTENDANCE_FINALIZED, {"meeting_id": meeting_id, **result})
    return result


@router.get("/student/{student_id}", response_model=attendance_model.StudentAttendanceResponse, summary="Get a Student's Attendance History")
def get_student_attendance(
    student_id: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subject_id: Optional[str] = None,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        result = attendance_service.get_student_attendance(
            student_id, current_user, db, start_date=start_date, end_date=end_date, subject_id=subject_id
        )
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return result


@router.get("/admin/overview", response_model=attendance_model.AdminOverviewResponse, summary="Attendance Overview Across Meetings")
def get_admin_overview(
    department_id: Optional[str] = None,
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    semester_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    admin: UserModel = Depends(get_current_admin),
):
    return attendance_service.get_admin_overview(
        db, department_id=department_id, course_id=course_id, batch_id=batch_id,
        semester_id=semester_id, start_date=start_date, end_date=end_date,
    )


# --- REPORT ENDPOINTS ---

@router.get("/reports/meeting/{meeting_id}", response_model=Dict[str, Any], summary="Detailed Meeting Report")
def get_meeting_report(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        report = attendance_service.generate_meeting_report(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MEETING_NOT_FOUND)
    return report


@router.get("/reports/student/{student_id}", response_model=Dict[str, Any], summary="Detailed Student Report")
def get_student_report(
    student_id: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subject_id: Optional[str] = None,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        report = attendance_service.generate_student_report(
            student_id, current_user, db, start_date=start_date, end_date=end_date, subject_id=subject_id
        )
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return report


@router.get("/reports/batch/{batch_id}", response_model=Dict[str, Any], summary="Batch Attendance Overview")
def get_batch_overview(
    batch_id: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subject_id: Optional[str] = None,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    overview = attendance_service.generate_batch_overview(
        batch_id, db, start_date=start_date, end_date=end_date, subject_id=subject_id
    )
    if overview is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Batch with ID {batch_id} not found")
    return overview


@router.get("/export/meeting/{meeting_id}/csv", summary="Export Meeting Attendance as CSV", response_class=StreamingResponse)
def export_meeting_attendance_csv(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        csv_string = attendance_service.export_meeting_csv(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if csv_string is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MEETING_NOT_FOUND)

    file_name = f"attendance-{meeting_id}.csv"
    return StreamingResponse(iter([csv_string]), media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={file_name}"})


# --- INDIVIDUAL RECORD ENDPOINTS (/api/attendance/{attendance_id}) ---

@router.get("/{attendance_id}/details", response_model=attendance_model.AttendanceDetailsResponse, summary="Get an Attendance Record with Sessions")
def get_attendance_details(
    attendance_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        details = attendance_service.get_attendance_details(attendance_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Attendance record {attendance_id} not found")
    return details


@router.put("/{attendance_id}/notes", response_model=attendance_model.Attendance, summary="Update Lecturer Notes")
def update_attendance_notes(
    attendance_id: str,
    notes_update: attendance_model.AttendanceNotesUpdate,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        attendance = attendance_service.update_notes(attendance_id, notes_update.notes, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if attendance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Attendance record {attendance_id} not found")
    return attendance
