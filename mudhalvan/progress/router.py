"""
Progress & Attendance Router
File: mudhalvan/progress/router.py

Video telemetry comes in through /attendance and /attendance/heartbeat.
Warnings raised from it (inactive, tab_switch, fast_forward) hold back
lesson credit until acknowledged.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.assessments.database import get_latest_result
from mudhalvan.auth.session import Session, get_settings, require_email_session
from mudhalvan.certificates.database import get_user_certificate
from mudhalvan.config import Settings
from mudhalvan.courses.database import get_course
from mudhalvan.database import get_db, serialize_many, serialize_mongo
from mudhalvan.progress import database as progress_db
from mudhalvan.progress.schemas import AttendanceUpdate, LessonHeartbeat, WarningAcknowledgement

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Progress"])


# ==================== PROGRESS ====================

@router.get("/user/progress")
async def get_user_progress(
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        courses = await progress_db.get_progress(db, session.email)
    except Exception:
        logger.exception("Error fetching user progress")
        raise HTTPException(status_code=500, detail="Failed to fetch user progress")
    return {"courses": serialize_mongo(courses)}


@router.post("/attendance/heartbeat")
async def lesson_heartbeat(
    data: LessonHeartbeat,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if (not data.courseId or data.moduleIndex is None or data.lessonIndex is None
            or not data.currentTime or not data.totalDuration):
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        course = await get_course(db, data.courseId)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        recorded = await progress_db.record_lesson_progress(
            db, session.email, course, data.moduleIndex, data.lessonIndex,
            data.currentTime, data.totalDuration, settings.attendance,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating lesson progress")
        raise HTTPException(status_code=500, detail="Failed to update attendance")

    if recorded is None:
        raise HTTPException(status_code=404, detail="Lesson not found")

    percentage, status, pending = recorded
    return {
        "success": True,
        "message": "Attendance updated successfully",
        "percentageWatched": percentage,
        "status": status,
        "pendingWarnings": pending,
    }


# ==================== ATTENDANCE ====================

@router.get("/attendance/thresholds")
async def get_attendance_thresholds(settings: Settings = Depends(get_settings)):
    """Warning boundaries shared with the video player"""
    return asdict(settings.attendance)


@router.post("/attendance")
async def update_attendance(
    data: AttendanceUpdate,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not data.courseId or not data.moduleId or not data.lessonId:
        raise HTTPException(status_code=400, detail="Missing required fields")

    event = (data.event.type, data.event.details) if data.event else None
    try:
        state = await progress_db.record_attendance(
            db, session.email, data.courseId, data.moduleId, data.lessonId,
            data.currentTime, data.totalDuration, settings.attendance, event=event,
        )
    except Exception:
        logger.exception("Attendance update failed")
        raise HTTPException(status_code=500, detail="Failed to update attendance")

    return {"success": True, "message": "Attendance updated successfully", **state}


@router.get("/attendance")
async def get_attendance(
    courseId: Optional[str] = Query(None),
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        records = await progress_db.list_attendance(db, session.email, courseId)
    except Exception:
        logger.exception("Error fetching attendance records")
        raise HTTPException(status_code=500, detail="Failed to fetch attendance records")
    return {"success": True, "records": serialize_many(records)}


@router.post("/attendance/acknowledge")
async def acknowledge_attendance_warning(
    data: WarningAcknowledgement,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        count = await progress_db.acknowledge_warnings(
            db, session.email, data.courseId, data.moduleId, data.lessonId, data.type,
        )
    except Exception:
        logger.exception("Error acknowledging attendance warning")
        raise HTTPException(status_code=500, detail="Failed to acknowledge warning")

    if count is None:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    return {"success": True, "acknowledged": count}


@router.get("/attendance/status")
async def get_attendance_status(
    courseId: Optional[str] = Query(None),
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not courseId:
        raise HTTPException(status_code=400, detail="Course ID is required")

    try:
        course = await get_course(db, courseId)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        course_progress = await progress_db.get_course_progress(db, session.email, courseId)
        result = await get_latest_result(db, session.email, courseId)
        certificate = await get_user_certificate(db, session.email, courseId)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching attendance status")
        raise HTTPException(status_code=500, detail="Failed to fetch attendance status")

    return {
        "totalLessons": progress_db.count_lessons(course),
        "completedLessons": progress_db.count_completed_lessons(course_progress),
        "progressPercentage": progress_db.completion_percentage(course, course_progress),
        "assessment": serialize_mongo({
            "score": result["score"],
            "passed": result["passed"],
            "completedAt": result.get("completedAt"),
        }) if result else None,
        "certificate": serialize_mongo({
            "certificateId": certificate["certificateId"],
            "issuedDate": certificate.get("issuedDate"),
        }) if certificate else None,
    }
