# /smart-lms-backend/app/services/realtime_service.py

"""
Real-time relay for live meetings.

WebSocket connections are grouped by meeting id. The relay is best effort:
there is no ordering or delivery guarantee, a failed send only drops the dead
connection, and nothing that happens here ever fails the HTTP request that
triggered a broadcast.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from app.core.timeutils import utcnow

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """WebSocket event types"""
    # Client -> server
    JOIN_MEETING = "join-meeting"
    LEAVE_MEETING = "leave-meeting"
    EMOTION_DATA = "emotion-data"

    # Server -> client
    ATTENDANCE_RECORDED = "attendance-recorded"
    ATTENDANCE_LEFT = "attendance-left"
    ATTENDANCE_ERROR = "attendance-error"
    ATTENDANCE_FINALIZED = "attendance-finalized"
    MEETING_STARTED = "meeting-started"
    MEETING_ENDED = "meeting-ended"
    EMOTION_UPDATE = "emotion-update"
    ERROR = "error"


@dataclass
class MeetingConnection:
    """One open WebSocket of one user in one meeting."""
    websocket: WebSocket
    user_id: str
    role: str
    meeting_id: str
    connected_at: Any = field(default_factory=utcnow)


class ConnectionManager:
    """Tracks open connections per meeting and fans events out to them."""

    def __init__(self):
        # meeting_id -> connections
        self._meetings: Dict[str, List[MeetingConnection]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, meeting_id: str, user_id: str, role: str) -> MeetingConnection:
        await websocket.accept()
        connection = MeetingConnection(websocket=websocket, user_id=user_id, role=role, meeting_id=meeting_id)
        async with self._lock:
            self._meetings.setdefault(meeting_id, []).append(connection)
        logger.info(f"WebSocket connected: user {user_id} to meeting {meeting_id}")
        return connection

    async def disconnect(self, connection: MeetingConnection) -> None:
        async with self._lock:
            connections = self._meetings.get(connection.meeting_id, [])
            if connection in connections:
                connections.remove(connection)
            if not connections:
                self._meetings.pop(connection.meeting_id, None)
        logger.info(f"WebSocket disconnected: user {connection.user_id} from meeting {connection.meeting_id}")

    def connection_count(self, meeting_id: str) -> int:
        return len(self._meetings.get(meeting_id, []))

    def user_connection_count(self, meeting_id: str, user_id: str) -> int:
        """Open connections of one user in a meeting, e.g. several browser tabs."""
        return sum(1 for c in self._meetings.get(meeting_id, []) if c.user_id == user_id)

    @staticmethod
    def build_message(event_type: EventType, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"type": event_type.value, "data": jsonable_encoder(data), "timestamp": utcnow().isoformat()}

    async def send(self, connection: MeetingConnection, event_type: EventType, data: Dict[str, Any]) -> None:
        """Send a message to a single connection."""
        try:
            await connection.websocket.send_json(self.build_message(event_type, data))
        except Exception as e:
            logger.error(f"Error sending to user {connection.user_id}: {e}")
            await self.disconnect(connection)

    async def broadcast(
        self,
        meeting_id: str,
        event_type: EventType,
        data: Dict[str, Any],
        roles: Optional[List[str]] = None,
    ) -> None:
        """
        Sends an event to every connection of a meeting, optionally only to
        connections whose user holds one of `roles`.
        """
        message = self.build_message(event_type, data)
        dead_connections = []

        for connection in list(self._meetings.get(meeting_id, [])):
            if roles and connection.role not in roles:
                continue
            try:
                await connection.websocket.send_json(message)
            except Exception as e:
                logger.error(f"Error broadcasting to user {connection.user_id}: {e}")
                dead_connections.append(connection)

        for connection in dead_connections:
            await self.disconnect(connection)


manager = ConnectionManager()
