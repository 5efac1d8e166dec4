# /smart-lms-backend/app/routers/meetings_router.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status, Response

from ..models import meeting_model
from ..models.meeting_model import MeetingStatus
from ..services import meeting_service, database_service
from ..services.realtime_service import manager, EventType
from ..core.timeutils import ensure_utc
from ..core.deps import get_current_active_user, get_current_staff
from ..db.models.user_model import User as UserModel

router = APIRouter()


def _not_found(meeting_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Meeting with ID {meeting_id} not found")


# --- MEETING COLLECTION ENDPOINTS (/api/meetings) ---

@router.post("", response_model=meeting_model.Meeting, status_code=status.HTTP_201_CREATED, summary="Schedule a Meeting")
def create_meeting(
    meeting_create: meeting_model.MeetingCreate,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        meeting = meeting_service.create_meeting(meeting_create, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if meeting is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Subject with ID {meeting_create.subject_id} not found")
    return meeting


@router.get("", response_model=meeting_model.MeetingListResponse, summary="List Meetings")
def list_meetings(
    department_id: Optional[str] = None,
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    semester_id: Optional[str] = None,
    subject_id: Optional[str] = None,
    meeting_status: Optional[MeetingStatus] = Query(default=None, alias="status"),
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_active_user),
):
    meetings = meeting_service.list_meetings(
        current_user, db,
        department_id=department_id, course_id=course_id, batch_id=batch_id,
        semester_id=semester_id, subject_id=subject_id,
        status=meeting_status.value if meeting_status else None,
    )
    return {"count": len(meetings), "meetings": meetings}


# --- INDIVIDUAL MEETING ENDPOINTS (/api/meetings/{meeting_id}) ---

@router.get("/{meeting_id}", response_model=meeting_model.Meeting, summary="Get a Single Meeting")
def get_meeting(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        meeting = meeting_service.get_meeting(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if meeting is None:
        raise _not_found(meeting_id)
    return meeting


@router.put("/{meeting_id}", response_model=meeting_model.Meeting, summary="Update a Scheduled Meeting")
def update_meeting(
    meeting_id: str,
    meeting_update: meeting_model.MeetingUpdate,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        meeting = meeting_service.update_meeting(meeting_id, meeting_update, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if meeting is None:
        raise _not_found(meeting_id)
    return meeting


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Cancel a Meeting")
def cancel_meeting(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        was_cancelled = meeting_service.cancel_meeting(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not was_cancelled:
        raise _not_found(meeting_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- LIFECYCLE ENDPOINTS ---

@router.get("/{meeting_id}/can-start", response_model=meeting_model.CanStartResponse, summary="Check Whether a Meeting Can Start")
def can_start_meeting(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        result = meeting_service.check_can_start(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if result is None:
        raise _not_found(meeting_id)
    return result


@router.post("/{meeting_id}/start", response_model=meeting_model.Meeting, summary="Start a Meeting")
def start_meeting(
    meeting_id: str,
    background_tasks: BackgroundTasks,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        meeting = meeting_service.start_meeting(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if meeting is None:
        raise _not_found(meeting_id)

    background_tasks.add_task(
        manager.broadcast, meeting_id, EventType.MEETING_STARTED,
        {"meeting_id": meeting_id, "started_at": ensure_utc(meeting.started_at)},
    )
    return meeting


@router.post("/{meeting_id}/end", response_model=meeting_model.MeetingEndResponse, summary="End a Meeting and Finalize Attendance")
def end_meeting(
    meeting_id: str,
    background_tasks: BackgroundTasks,
    meeting_end: Optional[meeting_model.MeetingEnd] = None,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    student_count = meeting_end.student_count if meeting_end else None
    try:
        result = meeting_service.end_meeting(meeting_id, current_user, db, student_count=student_count)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if result is None:
        raise _not_found(meeting_id)

    background_tasks.add_task(
        manager.broadcast, meeting_id, EventType.MEETING_ENDED,
        {"meeting_id": meeting_id, "ended_at": ensure_utc(result["meeting"].ended_at)},
    )
    background_tasks.add_task(
        manager.broadcast, meeting_id, EventType.ATTENDANCE_FINALIZED,
        {"meeting_id": meeting_id, **result["attendance"]},
    )
    return result
