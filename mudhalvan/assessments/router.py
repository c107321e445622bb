"""
Assessment Router
File: mudhalvan/assessments/router.py

Instructors replace a course's question set; learners who finished every
lesson take the assessment and every attempt is kept.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.assessments import database as assessments_db
from mudhalvan.assessments.schemas import AssessmentSubmission, QuestionSetUpsert
from mudhalvan.auth.permissions import InstructorGuard
from mudhalvan.auth.session import Session, require_email_session
from mudhalvan.config import DEFAULT_PASSING_SCORE
from mudhalvan.courses.database import get_course
from mudhalvan.database import get_db, serialize_many, serialize_mongo
from mudhalvan.progress import database as progress_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assessments"])

require_question_author = InstructorGuard(
    status_code=401, detail="Unauthorized. Only instructors can create assessment questions.",
)


# ==================== AUTHORING ====================

@router.post("/questions")
async def upsert_questions_endpoint(
    data: QuestionSetUpsert,
    session: Session = Depends(require_question_author),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not data.courseId:
        raise HTTPException(status_code=400, detail="Course ID is required")
    if not data.questions:
        raise HTTPException(status_code=400, detail="Valid questions are required")

    questions = [q.model_dump(exclude_none=True) for q in data.questions]
    try:
        course = await get_course(db, data.courseId)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        await assessments_db.upsert_questions(db, course, questions)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating assessment questions")
        raise HTTPException(status_code=500, detail="Failed to create assessment questions")

    logger.info("Assessment for %s replaced by %s (%d questions)", data.courseId, session.email, len(questions))
    return {
        "success": True,
        "message": "Assessment questions created successfully",
        "questionCount": len(questions),
    }


# ==================== TAKING THE ASSESSMENT ====================

@router.get("/courses/{course_id}/assessment")
async def get_course_assessment(
    course_id: str,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        course_progress = await progress_db.get_course_progress(db, session.email, course_id)
        if course_progress is None:
            raise HTTPException(status_code=403, detail="You need to enroll in this course first")

        course = await get_course(db, course_id)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        percentage = progress_db.completion_percentage(course, course_progress)
        if percentage != 100:
            raise HTTPException(status_code=403, detail={
                "error": "You need to complete all lessons before taking the assessment",
                "completionPercentage": percentage,
            })

        assessment = await assessments_db.get_assessment(db, course_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching course assessment")
        raise HTTPException(status_code=500, detail="Failed to fetch assessment")

    if not assessment:
        raise HTTPException(status_code=404, detail="No assessment available for this course")
    return serialize_mongo(assessments_db.public_assessment(assessment))


@router.post("/courses/{course_id}/assessment")
async def submit_course_assessment(
    course_id: str,
    data: AssessmentSubmission,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if data.answers is None:
        raise HTTPException(status_code=400, detail="Invalid answers format")

    answers = [a.model_dump() for a in data.answers]
    try:
        assessment = await assessments_db.get_assessment(db, course_id)
        if not assessment or not assessment.get("questions"):
            raise HTTPException(status_code=404, detail="No assessment questions found for this course")

        correct, total, score = assessments_db.score_answers(assessment["questions"], answers)
        passed = score >= (assessment.get("passingScore") or DEFAULT_PASSING_SCORE)

        await assessments_db.record_result(
            db, session.email, course_id, score, passed,
            assessment_title=assessment.get("title"), answers=answers,
        )
        if passed:
            await progress_db.mark_certificate_earned(db, session.email, course_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error submitting assessment")
        raise HTTPException(status_code=500, detail="Failed to submit assessment")

    return {"score": score, "passed": passed, "correctAnswers": correct, "totalQuestions": total}


@router.get("/user/assessments")
async def get_user_assessments(
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        results = await assessments_db.list_results_for_user(db, session.email)
    except Exception:
        logger.exception("Error fetching assessment results")
        raise HTTPException(status_code=500, detail="Failed to fetch assessment results")
    return {"results": serialize_many(results)}
