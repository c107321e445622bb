import math
from datetime import datetime
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.config import AttendanceThresholds
from mudhalvan.database import ATTENDANCE, USER_PROGRESS
from mudhalvan.progress.attendance import AttendanceWarnings, WarningType, is_fast_forward

LESSON_COMPLETED = "completed"
LESSON_IN_PROGRESS = "in-progress"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ==================== PROGRESS ====================

async def get_progress(db: AsyncIOMotorDatabase, user_email: str) -> dict:
    """Course id → progress state; a user without a record has an empty mapping"""
    progress = await db[USER_PROGRESS].find_one({"userEmail": user_email}, {"courses": 1})
    if not progress:
        return {}
    return progress.get("courses") or {}


async def get_course_progress(db: AsyncIOMotorDatabase, user_email: str, course_id: str) -> Optional[dict]:
    """Progress entry for one course, None when the user never started it"""
    progress = await db[USER_PROGRESS].find_one(
        {"userEmail": user_email, f"courses.{course_id}": {"$exists": True}}
    )
    if not progress:
        return None
    return (progress.get("courses") or {}).get(course_id)


def count_lessons(course: dict) -> int:
    return sum(len(module.get("lessons") or []) for module in course.get("syllabus") or [])


def indexed_entries(container) -> List[Tuple[str, dict]]:
    """(index, entry) pairs of a modules/lessons container"""
    # Index-keyed paths may be stored as sub-documents or as arrays
    if isinstance(container, dict):
        return [(str(key), entry) for key, entry in container.items() if entry]
    if isinstance(container, list):
        return [(str(index), entry) for index, entry in enumerate(container) if entry]
    return []


def _entries(container) -> list:
    return [entry for _, entry in indexed_entries(container)]


def count_completed_lessons(course_progress: Optional[dict]) -> int:
    if not course_progress:
        return 0
    completed = 0
    for module in _entries(course_progress.get("modules")):
        for lesson in _entries(module.get("lessons")):
            if lesson.get("status") == LESSON_COMPLETED:
                completed += 1
    return completed


def completion_percentage(course: dict, course_progress: Optional[dict]) -> int:
    total = count_lessons(course)
    if total == 0:
        return 0
    return round_half_up(count_completed_lessons(course_progress) / total * 100)


def parse_duration_minutes(duration: Optional[str]) -> Optional[float]:
    """'15 min' -> 15.0"""
    if not duration:
        return None
    try:
        minutes = float(duration.split()[0])
    except (ValueError, IndexError):
        return None
    return minutes if minutes > 0 else None


async def record_lesson_progress(
    db: AsyncIOMotorDatabase,
    user_email: str,
    course: dict,
    module_index: int,
    lesson_index: int,
    current_time: float,
    total_duration: float,
    thresholds: AttendanceThresholds,
) -> Optional[Tuple[float, str, List[str]]]:
    """
    Store how far into a lesson the user has watched

    The lesson stays in-progress while its attendance record holds
    unacknowledged warnings.

    Returns (percentageWatched, status, pending warning types), or None
    when the syllabus has no such lesson.
    """
    syllabus = course.get("syllabus") or []
    if not 0 <= module_index < len(syllabus):
        return None
    module = syllabus[module_index]
    lessons = module.get("lessons") or []
    if not 0 <= lesson_index < len(lessons):
        return None
    lesson = lessons[lesson_index]

    minutes = parse_duration_minutes(lesson.get("duration"))
    if minutes is None:
        minutes = total_duration / 60
    percentage = (current_time / 60) / minutes * 100 if minutes else 0.0

    course_id = course["id"]
    module_id, lesson_id = lesson_key(module_index, lesson_index)
    pending = await pending_warning_types(db, user_email, course_id, module_id, lesson_id)

    watched_enough = percentage >= thresholds.completion_percent
    status = LESSON_COMPLETED if watched_enough and not pending else LESSON_IN_PROGRESS

    now = datetime.utcnow()
    lesson_path = f"courses.{course_id}.modules.{module_index}.lessons.{lesson_index}"
    await db[USER_PROGRESS].update_one(
        {"userEmail": user_email},
        {"$set": {
            lesson_path: {
                "moduleName": module.get("title"),
                "lessonName": lesson.get("title"),
                "currentTime": current_time,
                "totalDuration": total_duration,
                "percentageWatched": percentage,
                "status": status,
                "lastUpdated": now,
            },
            f"courses.{course_id}.lastAccessed": now,
            f"courses.{course_id}.title": course.get("title"),
        }},
        upsert=True,
    )
    return percentage, status, pending


async def mark_certificate_earned(db: AsyncIOMotorDatabase, user_email: str, course_id: str):
    now = datetime.utcnow()
    await db[USER_PROGRESS].update_one(
        {"userEmail": user_email},
        {"$set": {
            f"courses.{course_id}.certificateEarned": True,
            f"courses.{course_id}.certificateDate": now,
        }},
        upsert=True,
    )


async def has_earned_certificate(db: AsyncIOMotorDatabase, user_email: str, course_id: str) -> bool:
    progress = await db[USER_PROGRESS].find_one(
        {"userEmail": user_email, f"courses.{course_id}.certificateEarned": True}
    )
    return progress is not None


# ==================== ATTENDANCE ====================

def lesson_key(module_index: int, lesson_index: int) -> Tuple[str, str]:
    """Attendance moduleId/lessonId are the lesson's syllabus positions"""
    return str(module_index), str(lesson_index)


def _attendance_key(user_email: str, course_id: str, module_id: str, lesson_id: str) -> dict:
    return {"userEmail": user_email, "courseId": course_id, "moduleId": module_id, "lessonId": lesson_id}


async def pending_warning_types(
    db: AsyncIOMotorDatabase, user_email: str, course_id: str, module_id: str, lesson_id: str,
) -> List[str]:
    record = await db[ATTENDANCE].find_one(
        _attendance_key(user_email, course_id, module_id, lesson_id), {"attentionEvents": 1}
    )
    if not record:
        return []
    return [e["type"] for e in AttendanceWarnings(list(record.get("attentionEvents") or [])).pending]


async def record_attendance(
    db: AsyncIOMotorDatabase,
    user_email: str,
    course_id: str,
    module_id: str,
    lesson_id: str,
    current_time: float,
    total_duration: float,
    thresholds: AttendanceThresholds,
    event: Optional[Tuple[WarningType, Optional[str]]] = None,
) -> dict:
    """
    Upsert the per-lesson attendance record from one telemetry sample

    The lesson is only marked complete while no warning is waiting for
    acknowledgment.
    """
    key = _attendance_key(user_email, course_id, module_id, lesson_id)
    existing = await db[ATTENDANCE].find_one(key)
    now = datetime.utcnow()

    warnings = AttendanceWarnings(list(existing.get("attentionEvents", [])) if existing else [])
    if event:
        warnings.raise_warning(event[0], event[1])

    # A first sample is measured from the start of the lesson
    if existing:
        elapsed = (now - existing.get("lastUpdated", now)).total_seconds()
        previous = existing.get("watchedDuration", 0) or 0
    else:
        elapsed = 0
        previous = 0
    if current_time and is_fast_forward(previous, current_time, elapsed, thresholds):
        warnings.raise_warning(
            WarningType.FAST_FORWARD,
            f"Fast forwarded {round_half_up(current_time - previous)} seconds",
        )

    completed = bool(existing and existing.get("completed"))
    update = {
        "watchedDuration": current_time or (existing or {}).get("watchedDuration", 0),
        "totalDuration": total_duration or (existing or {}).get("totalDuration", 0),
        "attentionEvents": warnings.events,
        "lastUpdated": now,
    }
    if (not completed and current_time and total_duration
            and current_time / total_duration > thresholds.record_complete_ratio
            and warnings.credit_allowed):
        completed = True
        update["endTime"] = now
    update["completed"] = completed

    await db[ATTENDANCE].update_one(
        key,
        {"$set": update, "$setOnInsert": {"startTime": now}},
        upsert=True,
    )
    return {
        "completed": completed,
        "creditAllowed": warnings.credit_allowed,
        "pendingWarnings": [e["type"] for e in warnings.pending],
    }


async def list_attendance(db: AsyncIOMotorDatabase, user_email: str, course_id: Optional[str] = None) -> List[dict]:
    query = {"userEmail": user_email}
    if course_id:
        query["courseId"] = course_id
    return await db[ATTENDANCE].find(query).sort("lastUpdated", -1).to_list(length=None)


async def acknowledge_warnings(
    db: AsyncIOMotorDatabase,
    user_email: str,
    course_id: str,
    module_id: str,
    lesson_id: str,
    warning: Optional[WarningType] = None,
) -> Optional[int]:
    """Returns how many warnings were acknowledged, None if there is no record"""
    key = _attendance_key(user_email, course_id, module_id, lesson_id)
    existing = await db[ATTENDANCE].find_one(key)
    if not existing:
        return None

    warnings = AttendanceWarnings(list(existing.get("attentionEvents", [])))
    count = warnings.acknowledge(warning)
    if count:
        await db[ATTENDANCE].update_one(key, {"$set": {"attentionEvents": warnings.events}})
    return count


