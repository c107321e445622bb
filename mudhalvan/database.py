import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from bson import ObjectId

from mudhalvan.config import Settings

logger = logging.getLogger(__name__)

# ==================== COLLECTIONS ====================

USERS = "users"
COURSES = "coursedetails"
ENROLLMENTS = "enrollments"
USER_PROGRESS = "userProgress"
ATTENDANCE = "attendance"
QUESTIONS = "questions"
ASSESSMENT_RESULTS = "assessmentResults"
CERTIFICATES = "certificates"
DISCUSSIONS = "course_discussions"


# ==================== CLIENT ====================

def create_database(settings: Settings) -> AsyncIOMotorDatabase:
    """Build the Mongo handle the application is wired with"""
    client = AsyncIOMotorClient(settings.mongo_url)
    return client[settings.mongo_db_name]


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return request.app.state.db


async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes backing the point lookups"""
    await db[USERS].create_index("email", unique=True)
    await db[USERS].create_index("googleId")

    await db[COURSES].create_index("id", unique=True)
    await db[COURSES].create_index("instructor")

    await db[ENROLLMENTS].create_index("userEmail", unique=True)
    await db[ENROLLMENTS].create_index("courseIds")
    await db[USER_PROGRESS].create_index("userEmail", unique=True)

    await db[ATTENDANCE].create_index(
        [("userEmail", 1), ("courseId", 1), ("moduleId", 1), ("lessonId", 1)],
        unique=True,
    )
    await db[ATTENDANCE].create_index([("userEmail", 1), ("lastUpdated", -1)])
    await db[ATTENDANCE].create_index("courseId")

    await db[QUESTIONS].create_index("courseId", unique=True)
    await db[ASSESSMENT_RESULTS].create_index([("userEmail", 1), ("courseId", 1)])

    await db[CERTIFICATES].create_index("certificateId", unique=True)
    await db[CERTIFICATES].create_index([("userEmail", 1), ("courseId", 1)], unique=True)

    await db[DISCUSSIONS].create_index([("courseId", 1), ("timestamp", -1)])
    await db[DISCUSSIONS].create_index([("userEmail", 1), ("courseId", 1), ("timestamp", -1)])

    logger.info("Database indexes created")


# ==================== SERIALIZATION HELPERS ====================

def serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    return serialize_value(doc)


def serialize_many(docs: list) -> list:
    return [serialize_mongo(doc) for doc in docs]
