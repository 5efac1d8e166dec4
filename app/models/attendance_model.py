# /smart-lms-backend/app/models/attendance_model.py

from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.timeutils import UTCDateTime


# --- Core Enumerations ---
class AttendanceStatus(str, Enum):
    PRESENT = "present"; ABSENT = "absent"; LATE = "late"; PARTIAL = "partial"


# --- Request Models ---

class AttendanceAction(BaseModel):
    """Body of the join and leave endpoints."""
    meeting_id: str = Field(..., min_length=1)


class AttendanceNotesUpdate(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=500)


# --- Response Models ---

class AttendanceSession(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    join_time: UTCDateTime
    leave_time: Optional[UTCDateTime] = None
    duration: int
    is_active: bool


class Attendance(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: str
    student_id: str
    student_name: str
    student_email: str
    status: AttendanceStatus
    first_join_time: Optional[UTCDateTime] = None
    last_leave_time: Optional[UTCDateTime] = None
    total_duration: int = 0
    rejoin_count: int = 0
    is_currently_present: bool = False
    attendance_percentage: float = 0.0
    is_late: bool = False
    notes: Optional[str] = None
    sessions: List[AttendanceSession] = []


class JoinResponse(BaseModel):
    message: str
    meeting_id: str
    student_id: str
    join_time: UTCDateTime
    session_count: int
    is_late: bool
    status: AttendanceStatus


class LeaveResponse(BaseModel):
    message: str
    meeting_id: str
    student_id: str
    leave_time: UTCDateTime
    total_duration: int
    attendance_percentage: float
    status: AttendanceStatus


class AttendanceStatistics(BaseModel):
    total: int = Field(..., description="Number of attendance records considered.")
    present_count: int
    late_count: int
    partial_count: int
    absent_count: int
    attendance_rate: float
    average_attendance_percentage: float


class MeetingAttendanceResponse(BaseModel):
    meeting: Dict[str, Any]
    statistics: AttendanceStatistics
    attendances: List[Attendance]


class StudentAttendanceResponse(BaseModel):
    student_id: str
    statistics: AttendanceStatistics
    count: int
    attendances: List[Attendance]


class AdminOverviewResponse(BaseModel):
    count: int
    overview: List[Dict[str, Any]]


class FinalizeResponse(BaseModel):
    message: str
    closed_sessions: int
    absent_marked: int
    total_records: int


class AttendanceDetailsResponse(BaseModel):
    attendance: Attendance
    student: Dict[str, Any]
    meeting: Dict[str, Any]
