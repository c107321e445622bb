"""
Analytics Router
File: mudhalvan/analytics/router.py

Reporting for instructors and admins. Instructors only see analytics for
courses they teach; system analytics are admin only.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.analytics import database as analytics_db
from mudhalvan.auth.identity import resolve_user_profile
from mudhalvan.auth.permissions import PrivilegeGuard, has_admin_privileges, has_staff_privileges
from mudhalvan.auth.session import Session, get_settings
from mudhalvan.config import Settings
from mudhalvan.courses.database import get_course
from mudhalvan.database import get_db, serialize_mongo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analytics"])

require_staff = PrivilegeGuard(
    has_staff_privileges, "Unauthorized - Only instructors or admins can access analytics",
)
require_admin = PrivilegeGuard(
    has_admin_privileges, "Unauthorized - Only admins can access system analytics",
)


# ==================== ATTENDANCE REPORTS ====================

@router.get("/attendance/summary")
async def get_attendance_summary(
    courseId: Optional[str] = Query(None),
    session: Session = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not courseId:
        raise HTTPException(status_code=400, detail="Course ID is required")

    try:
        course = await get_course(db, courseId)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        summary = await analytics_db.attendance_summary(db, course)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error generating attendance summary")
        raise HTTPException(status_code=500, detail="Failed to generate attendance summary")
    return summary


@router.get("/attendance/report")
async def get_attendance_report(
    courseId: Optional[str] = Query(None),
    session: Session = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        report = await analytics_db.attendance_report(db, courseId)
    except Exception:
        logger.exception("Error generating attendance report")
        raise HTTPException(status_code=500, detail="Failed to generate attendance report")
    return {"attendanceReport": serialize_mongo(report)}


# ==================== ANALYTICS ====================

@router.get("/analytics")
async def get_course_analytics(
    courseId: Optional[str] = Query(None),
    session: Session = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not courseId:
        raise HTTPException(status_code=400, detail="Course ID is required")

    try:
        course = await get_course(db, courseId)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        if not has_admin_privileges(session, settings.super_admin_email):
            profile = await resolve_user_profile(db, session)
            if course.get("instructor") != profile["name"]:
                raise HTTPException(
                    status_code=403,
                    detail="Unauthorized - You can only view analytics for your own courses",
                )

        analytics = await analytics_db.course_analytics(db, course)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching analytics for %s", courseId)
        raise HTTPException(status_code=500, detail="Failed to fetch analytics data")
    return analytics


@router.get("/analytics/system")
async def get_system_analytics(
    session: Session = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        analytics = await analytics_db.system_analytics(db)
    except Exception:
        logger.exception("Error fetching system analytics")
        raise HTTPException(status_code=500, detail="Failed to fetch system analytics data")
    return serialize_mongo(analytics)
