# /smart-lms-backend/app/routers/emotions_router.py

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from ..models import emotion_model
from ..services import emotion_service, database_service
from ..services.realtime_service import manager, EventType
from ..core.deps import get_current_active_user, get_current_staff, get_current_student
from ..db.models.user_model import User as UserModel

router = APIRouter()

NO_DATA = "No emotion data found for this meeting"


def _meeting_not_found(meeting_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Meeting with ID {meeting_id} not found")


@router.post("/meetings/{meeting_id}/emotions", response_model=emotion_model.EmotionSample, status_code=status.HTTP_201_CREATED, summary="Submit an Emotion Sample")
def submit_emotion(
    meeting_id: str,
    sample: emotion_model.EmotionSampleCreate,
    background_tasks: BackgroundTasks,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_student),
):
    """HTTP fallback for clients whose real-time connection is unavailable."""
    try:
        emotion = emotion_service.record_emotion(meeting_id, current_user, sample, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if emotion is None:
        raise _meeting_not_found(meeting_id)

    background_tasks.add_task(
        manager.broadcast, meeting_id, EventType.EMOTION_UPDATE,
        {
            "student_id": current_user.id,
            "student_name": current_user.full_name,
            "dominant_emotion": emotion.dominant_emotion,
            "attentiveness": emotion.attentiveness,
        },
        ["teacher", "admin"],
    )
    return emotion


@router.get("/meetings/{meeting_id}/summary", response_model=emotion_model.EmotionSummary, summary="Meeting Emotion Summary")
def get_summary(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        summary = emotion_service.get_meeting_summary(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_DATA)
    return summary


@router.get("/meetings/{meeting_id}/students/{student_id}/timeline", response_model=emotion_model.TimelineResponse, summary="A Student's Emotion Timeline")
def get_student_timeline(
    meeting_id: str,
    student_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        timeline = emotion_service.get_student_timeline(meeting_id, student_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if timeline is None:
        raise _meeting_not_found(meeting_id)
    return timeline


@router.get("/meetings/{meeting_id}/alerts", response_model=emotion_model.AlertsResponse, summary="Engagement Alerts")
def get_alerts(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        alerts = emotion_service.get_alerts(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if alerts is None:
        raise _meeting_not_found(meeting_id)
    return alerts


@router.get("/meetings/{meeting_id}/engagement", response_model=emotion_model.EngagementResponse, summary="Current Engagement")
def get_engagement(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        engagement = emotion_service.get_current_engagement(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if engagement is None:
        raise _meeting_not_found(meeting_id)
    return engagement


@router.get("/meetings/{meeting_id}/all", response_model=emotion_model.EmotionPageResponse, summary="All Emotion Samples (Paginated)")
def list_emotions(
    meeting_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        result = emotion_service.list_emotions(meeting_id, current_user, db, page=page, limit=limit)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if result is None:
        raise _meeting_not_found(meeting_id)
    return result


@router.post("/meetings/{meeting_id}/update-summary", summary="Store the Emotion Summary on the Meeting")
def update_summary(
    meeting_id: str,
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
    current_user: UserModel = Depends(get_current_staff),
):
    try:
        summary = emotion_service.update_meeting_summary(meeting_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_DATA)
    return {"message": "Meeting summary updated successfully", "emotion_summary": summary}
