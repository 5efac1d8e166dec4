# /smart-lms-backend/app/models/meeting_model.py

from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.timeutils import UTCDateTime


class MeetingStatus(str, Enum):
    SCHEDULED = "scheduled"; ONGOING = "ongoing"; COMPLETED = "completed"; CANCELLED = "cancelled"


class MeetingCreate(BaseModel):
    topic: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    subject_id: str
    scheduled_start: UTCDateTime
    scheduled_end: Optional[UTCDateTime] = None
    room_url: Optional[str] = None
    student_count: int = Field(default=0, ge=0)
    # Optional overrides; derived from the subject when omitted.
    department_id: Optional[str] = None
    course_id: Optional[str] = None
    batch_id: Optional[str] = None
    semester_id: Optional[str] = None

    @model_validator(mode="after")
    def end_must_follow_start(self):
        if self.scheduled_end is not None and self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start.")
        return self


class MeetingUpdate(BaseModel):
    topic: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    scheduled_start: Optional[UTCDateTime] = None
    scheduled_end: Optional[UTCDateTime] = None
    room_url: Optional[str] = None


class MeetingEnd(BaseModel):
    student_count: Optional[int] = Field(default=None, ge=0)


class Meeting(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    topic: str
    description: Optional[str] = None
    subject_id: str
    lecturer_id: str
    department_id: Optional[str] = None
    course_id: Optional[str] = None
    batch_id: Optional[str] = None
    semester_id: Optional[str] = None
    scheduled_start: UTCDateTime
    scheduled_end: Optional[UTCDateTime] = None
    status: MeetingStatus
    started_at: Optional[UTCDateTime] = None
    ended_at: Optional[UTCDateTime] = None
    student_count: int = 0
    room_url: Optional[str] = None
    emotion_summary: Optional[Dict[str, Any]] = None
    is_active: bool = True


class MeetingListResponse(BaseModel):
    count: int
    meetings: List[Meeting]


class CanStartResponse(BaseModel):
    can_start: bool
    current_time: UTCDateTime
    scheduled_time: UTCDateTime
    status: MeetingStatus


class MeetingEndResponse(BaseModel):
    meeting: Meeting
    attendance: Dict[str, int]
