from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class QuestionIn(BaseModel):
    """Instructor-authored question; fields beyond these are stored as given"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    text: Optional[str] = None
    options: Optional[List[Any]] = None
    correctAnswer: Optional[Any] = None


class QuestionSetUpsert(BaseModel):
    courseId: Optional[str] = None
    questions: Optional[List[QuestionIn]] = None


class AnswerIn(BaseModel):
    questionId: Optional[str] = None
    answer: Optional[Any] = None


class AssessmentSubmission(BaseModel):
    answers: Optional[List[AnswerIn]] = None
