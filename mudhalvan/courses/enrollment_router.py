"""
ENROLLMENT ROUTER
File: mudhalvan/courses/enrollment_router.py

One enrollments document per user holding the ids of their courses.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.auth.session import Session, require_email_session
from mudhalvan.courses.database import (
    enroll_user, get_course, get_enrolled_course_ids, unenroll_user,
)
from mudhalvan.courses.schemas import EnrollmentCreate
from mudhalvan.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Enrollments"])


@router.get("/enrollments")
async def get_enrollments(
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        course_ids = await get_enrolled_course_ids(db, session.email)
    except Exception:
        logger.exception("Error fetching enrollments")
        raise HTTPException(status_code=500, detail="Failed to fetch enrollments")
    return {"enrolledCourses": course_ids}


@router.post("/enrollments")
async def enroll_endpoint(
    data: EnrollmentCreate,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not data.courseId:
        raise HTTPException(status_code=400, detail="Course ID is required")

    try:
        course = await get_course(db, data.courseId)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        enrolled = await enroll_user(db, session.email, course)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error enrolling in course %s", data.courseId)
        raise HTTPException(status_code=500, detail="Failed to enroll in course")

    if not enrolled:
        raise HTTPException(status_code=400, detail="Already enrolled in this course")

    logger.info("%s enrolled in %s", session.email, data.courseId)
    return {"success": True, "message": "Successfully enrolled in course", "courseId": data.courseId}


@router.delete("/enrollments/{course_id}")
async def unenroll_endpoint(
    course_id: str,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        removed = await unenroll_user(db, session.email, course_id)
    except Exception:
        logger.exception("Error unenrolling from course %s", course_id)
        raise HTTPException(status_code=500, detail="Failed to unenroll from course")

    if not removed:
        raise HTTPException(status_code=404, detail="Not enrolled in this course")
    return {"success": True, "message": "Successfully unenrolled from course"}
