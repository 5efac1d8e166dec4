# /smart-lms-backend/app/routers/realtime_router.py

"""
WebSocket endpoint of a live meeting: `/ws/meetings/{meeting_id}?token=<jwt>`.

Messages are JSON objects `{"type": ..., "data": {...}}`. Students send
`join-meeting`, `leave-meeting` and `emotion-data`; everyone connected to the
meeting receives the resulting events. When the last socket of a student
drops, their open attendance session is closed as if they had left.
"""

import json
import logging
from typing import Dict, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..core.deps import get_user_from_token
from ..core.timeutils import ensure_utc
from ..models.emotion_model import EmotionSampleCreate
from ..models.user_model import UserRole
from ..services import attendance_service, emotion_service, database_service
from ..services.realtime_service import manager, EventType, MeetingConnection

logger = logging.getLogger(__name__)

router = APIRouter()

STAFF_ROLES = [UserRole.TEACHER.value, UserRole.ADMIN.value]


async def _handle_join(connection: MeetingConnection, user, user_name: str, db: database_service.DatabaseService) -> None:
    try:
        result = await run_in_threadpool(attendance_service.join_meeting, connection.meeting_id, user, db)
    except (ValueError, PermissionError) as e:
        await manager.send(connection, EventType.ATTENDANCE_ERROR, {"message": str(e)})
        return
    if result is None:
        await manager.send(connection, EventType.ATTENDANCE_ERROR, {"message": "Meeting not found"})
        return
    await manager.broadcast(connection.meeting_id, EventType.ATTENDANCE_RECORDED, {**result, "student_name": user_name})


async def _handle_leave(connection: MeetingConnection, user, user_name: str, db: database_service.DatabaseService) -> None:
    try:
        result = await run_in_threadpool(attendance_service.leave_meeting, connection.meeting_id, user, db)
    except ValueError as e:
        await manager.send(connection, EventType.ATTENDANCE_ERROR, {"message": str(e)})
        return
    if result is None:
        await manager.send(connection, EventType.ATTENDANCE_ERROR, {"message": "No attendance record for this meeting"})
        return
    await manager.broadcast(connection.meeting_id, EventType.ATTENDANCE_LEFT, {**result, "student_name": user_name})


async def _handle_emotion(connection: MeetingConnection, user, user_name: str, data: Dict[str, Any], db: database_service.DatabaseService) -> None:
    try:
        sample = EmotionSampleCreate.model_validate(data)
        emotion = await run_in_threadpool(emotion_service.record_emotion, connection.meeting_id, user, sample, db)
    except ValidationError as e:
        await manager.send(connection, EventType.ERROR, {"message": "Invalid emotion data", "errors": e.errors(include_url=False, include_context=False)})
        return
    except PermissionError as e:
        await manager.send(connection, EventType.ERROR, {"message": str(e)})
        return
    if emotion is None:
        return

    await manager.broadcast(
        connection.meeting_id,
        EventType.EMOTION_UPDATE,
        {
            "student_id": connection.user_id,
            "student_name": user_name,
            "dominant_emotion": emotion.dominant_emotion,
            "attentiveness": emotion.attentiveness,
            "face_detected": emotion.face_detected,
            "timestamp": ensure_utc(emotion.timestamp),
        },
        roles=STAFF_ROLES,
    )


async def _close_dangling_session(connection: MeetingConnection, user_name: str, db: database_service.DatabaseService) -> None:
    meeting_id = connection.meeting_id
    attendance = await run_in_threadpool(attendance_service.close_open_session, meeting_id, connection.user_id, db)
    if attendance is None:
        return
    await manager.broadcast(
        meeting_id,
        EventType.ATTENDANCE_LEFT,
        {
            "meeting_id": meeting_id,
            "student_id": connection.user_id,
            "student_name": user_name,
            "total_duration": attendance.total_duration,
            "attendance_percentage": attendance.attendance_percentage,
            "status": attendance.status,
            "reason": "disconnected",
        },
    )


@router.websocket("/meetings/{meeting_id}")
async def meeting_socket(
    websocket: WebSocket,
    meeting_id: str,
    token: str = "",
    db: database_service.DatabaseService = Depends(database_service.get_db_service),
):
    # Synchronous database work runs in the threadpool, off the event loop.
    user = await run_in_threadpool(get_user_from_token, token, db)
    if user is None or not user.is_active:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if await run_in_threadpool(db.get_meeting_by_id, meeting_id) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # Commits expire the ORM user, so the fields broadcast later are read once here.
    user_name = user.full_name
    connection = await manager.connect(websocket, meeting_id, user.id, user.role)
    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except ValueError:
                await manager.send(connection, EventType.ERROR, {"message": "Messages must be valid JSON"})
                continue
            if not isinstance(message, dict):
                await manager.send(connection, EventType.ERROR, {"message": "Messages must be JSON objects"})
                continue

            message_type = message.get("type")
            if message_type == EventType.JOIN_MEETING.value:
                await _handle_join(connection, user, user_name, db)
            elif message_type == EventType.LEAVE_MEETING.value:
                await _handle_leave(connection, user, user_name, db)
            elif message_type == EventType.EMOTION_DATA.value:
                await _handle_emotion(connection, user, user_name, message.get("data") or {}, db)
            else:
                await manager.send(connection, EventType.ERROR, {"message": f"Unknown message type: {message_type}"})
    except WebSocketDisconnect:
        logger.info(f"Client of user {connection.user_id} disconnected from meeting {meeting_id}")
    finally:
        await manager.disconnect(connection)
        # Another tab of the same student keeps the session open.
        if connection.role == UserRole.STUDENT.value and manager.user_connection_count(meeting_id, connection.user_id) == 0:
            await _close_dangling_session(connection, user_name, db)
