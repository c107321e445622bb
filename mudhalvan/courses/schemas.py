from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class CourseLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

# ==================== SYLLABUS ====================

class Lesson(BaseModel):
    title: str
    duration: str = ""


class Module(BaseModel):
    title: str
    description: str = ""
    duration: str = ""
    lessons: List[Lesson] = []


class Resource(BaseModel):
    title: str
    url: str

# ==================== COURSE MODELS ====================

class CourseCreate(BaseModel):
    # used as a key inside progress documents, so no "." or "$"
    id: str = Field(..., min_length=1, pattern=r"^[^.$]+$")
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    instructor: str = ""
    image: Optional[str] = None
    level: CourseLevel = CourseLevel.BEGINNER
    duration: str = ""
    students: int = 0
    language: str = "English"
    certificate: bool = True
    learningOutcomes: Optional[List[str]] = None
    syllabus: List[Module] = []
    resources: Optional[List[Resource]] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    instructor: Optional[str] = None
    image: Optional[str] = None
    level: Optional[CourseLevel] = None
    duration: Optional[str] = None
    language: Optional[str] = None
    certificate: Optional[bool] = None
    learningOutcomes: Optional[List[str]] = None
    syllabus: Optional[List[Module]] = None
    resources: Optional[List[Resource]] = None

# ==================== ENROLLMENT ====================

class EnrollmentCreate(BaseModel):
    courseId: Optional[str] = None
