# /smart-lms-backend/app/models/emotion_model.py

from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.timeutils import UTCDateTime


class DominantEmotion(str, Enum):
    HAPPY = "happy"; SAD = "sad"; ANGRY = "angry"; SURPRISED = "surprised"
    FEARFUL = "fearful"; DISGUSTED = "disgusted"; NEUTRAL = "neutral"; UNKNOWN = "unknown"


class EmotionScores(BaseModel):
    """Per-expression probabilities as produced by the in-browser classifier."""
    happy: float = Field(default=0.0, ge=0, le=1)
    sad: float = Field(default=0.0, ge=0, le=1)
    angry: float = Field(default=0.0, ge=0, le=1)
    surprised: float = Field(default=0.0, ge=0, le=1)
    fearful: float = Field(default=0.0, ge=0, le=1)
    disgusted: float = Field(default=0.0, ge=0, le=1)
    neutral: float = Field(default=0.0, ge=0, le=1)


class EmotionSampleCreate(BaseModel):
    emotions: EmotionScores = Field(default_factory=EmotionScores)
    dominant_emotion: DominantEmotion = DominantEmotion.NEUTRAL
    face_detected: bool = False
    confidence: float = Field(default=0.0, ge=0, le=1)
    session_id: Optional[str] = None


class EmotionSample(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: str
    student_id: str
    timestamp: UTCDateTime
    happy: float
    sad: float
    angry: float
    surprised: float
    fearful: float
    disgusted: float
    neutral: float
    dominant_emotion: DominantEmotion
    face_detected: bool
    detection_confidence: float
    attentiveness: float
    is_present: bool
    session_id: Optional[str] = None


class EmotionSummary(BaseModel):
    meeting_id: str
    avg_happiness: int
    avg_sadness: int
    avg_anger: int
    avg_neutral: int
    avg_engagement: int
    total_records: int
    unique_students: int


class TimelineResponse(BaseModel):
    meeting_id: str
    student_id: str
    timeline: List[EmotionSample]
    total_records: int


class AlertsResponse(BaseModel):
    meeting_id: str
    negative_emotions: List[Dict[str, Any]]
    low_attentiveness: List[Dict[str, Any]]
    total_alerts: int


class EngagementResponse(BaseModel):
    meeting_id: str
    total_students: int
    engaged: int
    disengaged: int
    avg_engagement: int
    students: List[Dict[str, Any]]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class EmotionPageResponse(BaseModel):
    emotions: List[EmotionSample]
    pagination: Pagination
