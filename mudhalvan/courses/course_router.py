import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.auth.identity import resolve_user_profile
from mudhalvan.auth.permissions import InstructorGuard
from mudhalvan.auth.session import Session
from mudhalvan.courses.database import (
    create_course, get_course, list_courses, list_instructor_courses, update_course,
)
from mudhalvan.courses.schemas import CourseCreate, CourseUpdate
from mudhalvan.database import get_db, serialize_many, serialize_mongo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Courses"])

require_course_author = InstructorGuard(
    status_code=403, detail="Unauthorized: Only instructors can create courses",
)


# ==================== CATALOG ====================

@router.get("/courses")
async def get_courses(db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        courses = await list_courses(db)
    except Exception:
        logger.exception("Error fetching courses")
        raise HTTPException(status_code=500, detail="Failed to fetch courses")
    return {"courses": serialize_many(courses), "count": len(courses)}


@router.get("/courses/instructor")
async def get_my_courses(
    session: Session = Depends(require_course_author),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Courses listing the caller as instructor"""
    profile = await resolve_user_profile(db, session)
    try:
        courses = await list_instructor_courses(db, profile["name"])
    except Exception:
        logger.exception("Error fetching instructor courses")
        raise HTTPException(status_code=500, detail="Failed to fetch courses")
    return {"courses": serialize_many(courses), "count": len(courses)}


@router.get("/courses/{course_id}")
async def get_course_by_id(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    if not course_id.strip():
        raise HTTPException(status_code=400, detail="Course ID is required")

    try:
        course = await get_course(db, course_id)
    except Exception:
        logger.exception("Error fetching course %s", course_id)
        raise HTTPException(status_code=500, detail="Failed to fetch course")

    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return serialize_mongo(course)


# ==================== AUTHORING ====================

@router.post("/courses", status_code=201)
async def create_course_endpoint(
    data: CourseCreate,
    session: Session = Depends(require_course_author),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course_data = data.model_dump(mode="json", exclude_none=True)
    if not course_data.get("instructor"):
        course_data["instructor"] = session.name or "Instructor"

    try:
        created = await create_course(db, course_data)
    except Exception:
        logger.exception("Error creating course")
        raise HTTPException(status_code=500, detail="Failed to create course")

    if not created:
        raise HTTPException(status_code=400, detail="A course with this id already exists")

    logger.info("Course %s created by %s", data.id, session.email)
    return {"success": True, "message": "Course created successfully", "courseId": data.id}


@router.put("/courses/{course_id}")
async def update_course_endpoint(
    course_id: str,
    data: CourseUpdate,
    session: Session = Depends(require_course_author),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    updates = data.model_dump(mode="json", exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        course = await update_course(db, course_id, updates)
    except Exception:
        logger.exception("Error updating course %s", course_id)
        raise HTTPException(status_code=500, detail="Failed to update course")

    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    logger.info("Course %s updated by %s", course_id, session.email)
    return serialize_mongo(course)
