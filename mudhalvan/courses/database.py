from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from mudhalvan.database import COURSES, ENROLLMENTS, USER_PROGRESS

# ==================== COURSE CRUD ====================

async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Get course by its human-assigned id"""
    return await db[COURSES].find_one({"id": course_id})


async def list_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    return await db[COURSES].find({}).to_list(length=None)


async def list_instructor_courses(db: AsyncIOMotorDatabase, instructor_name: str) -> List[dict]:
    return await db[COURSES].find({"instructor": instructor_name}).to_list(length=None)


async def create_course(db: AsyncIOMotorDatabase, course_data: dict) -> bool:
    """
    Insert a course definition
    Returns False when a course with the same id already exists
    """
    now = datetime.utcnow()
    course = {**course_data, "createdAt": now, "updatedAt": now}

    if await get_course(db, course["id"]):
        return False
    try:
        await db[COURSES].insert_one(course)
    except DuplicateKeyError:
        return False
    return True


async def update_course(db: AsyncIOMotorDatabase, course_id: str, updates: dict) -> Optional[dict]:
    """
    Apply a partial update
    Any instructor may edit any course; no ownership is recorded.
    """
    if not await get_course(db, course_id):
        return None

    updates["updatedAt"] = datetime.utcnow()
    await db[COURSES].update_one({"id": course_id}, {"$set": updates})
    return await get_course(db, course_id)


# ==================== ENROLLMENTS ====================

async def get_enrolled_course_ids(db: AsyncIOMotorDatabase, user_email: str) -> List[str]:
    enrollment = await db[ENROLLMENTS].find_one({"userEmail": user_email})
    return enrollment.get("courseIds", []) if enrollment else []


async def enroll_user(db: AsyncIOMotorDatabase, user_email: str, course: dict) -> bool:
    """
    Enroll user in course
    Returns False if already enrolled
    """
    course_id = course["id"]
    if course_id in await get_enrolled_course_ids(db, user_email):
        return False

    now = datetime.utcnow()
    await db[ENROLLMENTS].update_one(
        {"userEmail": user_email},
        {"$addToSet": {"courseIds": course_id}, "$set": {"updatedAt": now}},
        upsert=True,
    )
    await db[COURSES].update_one({"id": course_id}, {"$inc": {"students": 1}})

    # Progress entry for the course so assessment eligibility can be checked
    await db[USER_PROGRESS].update_one(
        {"userEmail": user_email},
        {"$set": {
            f"courses.{course_id}.title": course.get("title"),
            f"courses.{course_id}.enrolledAt": now,
            f"courses.{course_id}.lastAccessed": now,
        }},
        upsert=True,
    )
    return True


async def unenroll_user(db: AsyncIOMotorDatabase, user_email: str, course_id: str) -> bool:
    result = await db[ENROLLMENTS].update_one(
        {"userEmail": user_email, "courseIds": course_id},
        {"$pull": {"courseIds": course_id}, "$set": {"updatedAt": datetime.utcnow()}},
    )
    if result.modified_count == 0:
        return False

    await db[COURSES].update_one({"id": course_id, "students": {"$gt": 0}}, {"$inc": {"students": -1}})
    return True
