from typing import Optional

from pydantic import BaseModel, Field

from mudhalvan.progress.attendance import WarningType

# moduleId / lessonId are syllabus positions, the same ones the heartbeat sends as indexes
POSITION_PATTERN = r"^\d+$"


class AttentionEventIn(BaseModel):
    type: WarningType
    details: Optional[str] = None


class AttendanceUpdate(BaseModel):
    courseId: Optional[str] = None
    moduleId: Optional[str] = Field(None, pattern=POSITION_PATTERN)
    lessonId: Optional[str] = Field(None, pattern=POSITION_PATTERN)
    currentTime: float = 0
    totalDuration: float = 0
    event: Optional[AttentionEventIn] = None


class LessonHeartbeat(BaseModel):
    courseId: Optional[str] = None
    moduleIndex: Optional[int] = Field(None, ge=0)
    lessonIndex: Optional[int] = Field(None, ge=0)
    currentTime: Optional[float] = None
    totalDuration: Optional[float] = None


class WarningAcknowledgement(BaseModel):
    courseId: str
    moduleId: str = Field(..., pattern=POSITION_PATTERN)
    lessonId: str = Field(..., pattern=POSITION_PATTERN)
    type: Optional[WarningType] = None
