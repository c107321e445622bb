"""
Reporting queries for instructors and admins

Every figure is computed from the stored progress, attendance, enrollment
and result documents at request time.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.config import ACTIVE_USER_DAYS, ENROLLMENT_TREND_MONTHS
from mudhalvan.database import (
    ASSESSMENT_RESULTS, ATTENDANCE, COURSES, ENROLLMENTS, QUESTIONS, USER_PROGRESS, USERS,
)
from mudhalvan.progress.database import (
    LESSON_COMPLETED, completion_percentage, count_completed_lessons, count_lessons,
    indexed_entries, round_half_up,
)

DISTRIBUTION_BUCKETS = ("0-20", "21-40", "41-60", "61-80", "81-100")
TOP_LESSONS = 5
POPULAR_COURSES = 5
LATEST_ACTIVITY = 10


def bucket(value: float) -> str:
    """Distribution bucket of a 0-100 value"""
    for upper, label in zip((20, 40, 60, 80), DISTRIBUTION_BUCKETS):
        if value <= upper:
            return label
    return DISTRIBUTION_BUCKETS[-1]


def _empty_distribution() -> Dict[str, int]:
    return {label: 0 for label in DISTRIBUTION_BUCKETS}


def rate(part: float, whole: float) -> float:
    """part/whole as a percentage, 0 for an empty whole"""
    return round(part / whole * 100, 2) if whole else 0.0


def lesson_titles(course: dict, module_id, lesson_id) -> Tuple[Optional[str], Optional[str]]:
    """Syllabus titles for an attendance position; (None, None) off the syllabus"""
    try:
        module = (course.get("syllabus") or [])[int(module_id)]
        lesson = (module.get("lessons") or [])[int(lesson_id)]
    except (TypeError, ValueError, IndexError):
        return None, None
    return module.get("title"), lesson.get("title")


# ==================== ATTENDANCE ====================

async def attendance_summary(db: AsyncIOMotorDatabase, course: dict) -> dict:
    """Per-lesson completion counts across everyone with an attendance record"""
    course_id = course["id"]
    total_lessons = count_lessons(course)
    records = await db[ATTENDANCE].find({"courseId": course_id}).to_list(length=None)

    completed_by_user: Dict[str, int] = {}
    lessons: Dict[str, dict] = {}
    total_completed = 0
    for record in records:
        email = record.get("userEmail")
        completed_by_user.setdefault(email, 0)

        key = f"{record.get('moduleId')}-{record.get('lessonId')}"
        if key not in lessons:
            module_name, lesson_name = lesson_titles(course, record.get("moduleId"), record.get("lessonId"))
            lessons[key] = {
                "key": key,
                "moduleName": module_name,
                "lessonName": lesson_name,
                "completedCount": 0,
                "inProgressCount": 0,
            }

        if record.get("completed"):
            total_completed += 1
            lessons[key]["completedCount"] += 1
            completed_by_user[email] += 1
        else:
            lessons[key]["inProgressCount"] += 1

    learners = len(completed_by_user)
    for entry in lessons.values():
        entry["completionRate"] = rate(entry["completedCount"], learners)
    ranked = sorted(lessons.values(), key=lambda entry: entry["completionRate"], reverse=True)

    finished = sum(1 for done in completed_by_user.values() if total_lessons and done >= total_lessons)
    return {
        "courseId": course_id,
        "courseTitle": course.get("title"),
        "totalLessons": total_lessons,
        "totalEnrolledUsers": learners,
        "totalAttendanceRecords": len(records),
        "totalCompletedLessons": total_completed,
        "overallCompletionRate": round_half_up(rate(total_completed, total_lessons * learners)),
        "usersCompletedAllLessons": finished,
        "courseCompletionRate": round_half_up(rate(finished, learners)),
        "mostCompletedLessons": ranked[:TOP_LESSONS],
        "leastCompletedLessons": list(reversed(ranked))[:TOP_LESSONS],
    }


async def attendance_report(db: AsyncIOMotorDatabase, course_id: Optional[str] = None) -> dict:
    """
    Lesson progress grouped as course id → user email → module → lesson

    Module and lesson names come from the names stored with each lesson's
    progress, falling back to their positions.
    """
    query = {f"courses.{course_id}": {"$exists": True}} if course_id else {}
    records = await db[USER_PROGRESS].find(query).to_list(length=None)

    emails = [r["userEmail"] for r in records]
    users = await db[USERS].find({"email": {"$in": emails}}, {"email": 1, "name": 1}).to_list(length=None)
    names = {u["email"]: u.get("name") for u in users}

    report: Dict[str, dict] = {}
    for record in records:
        email = record["userEmail"]
        courses = record.get("courses") or {}
        if course_id:
            courses = {course_id: courses[course_id]} if course_id in courses else {}

        for progress_course_id, course_progress in courses.items():
            if not isinstance(course_progress, dict):
                continue
            modules = {}
            for module_index, module in indexed_entries(course_progress.get("modules")):
                module_name = None
                lessons = {}
                for lesson_index, lesson in indexed_entries(module.get("lessons")):
                    module_name = module_name or lesson.get("moduleName")
                    lessons[lesson.get("lessonName") or f"Lesson {lesson_index}"] = {
                        "status": lesson.get("status"),
                        "percentageWatched": lesson.get("percentageWatched"),
                        "lastUpdated": lesson.get("lastUpdated"),
                    }
                modules[module_name or f"Module {module_index}"] = {"lessons": lessons}

            report.setdefault(progress_course_id, {})[email] = {
                "user": {"name": names.get(email) or "Unknown", "email": email},
                "modules": modules,
            }
    return report


# ==================== COURSE ANALYTICS ====================

def lesson_heatmap(course: dict, course_progress: List[dict], enrolled: int) -> Tuple[List[dict], List[dict]]:
    """Returns (modulesData, one heatmap cell per syllabus lesson)"""
    modules_data = []
    cells: Dict[Tuple[str, str], dict] = {}
    for module_index, module in enumerate(course.get("syllabus") or []):
        lessons = module.get("lessons") or []
        modules_data.append({
            "title": module.get("title"),
            "lessons": [{"title": lesson.get("title"), "index": i} for i, lesson in enumerate(lessons)],
        })
        for lesson_index, lesson in enumerate(lessons):
            cells[(str(module_index), str(lesson_index))] = {
                "moduleTitle": module.get("title"),
                "lessonTitle": lesson.get("title"),
                "moduleIndex": module_index,
                "lessonIndex": lesson_index,
                "totalEnrolled": enrolled,
                "startedCount": 0,
                "completionCount": 0,
            }

    view_times = defaultdict(list)
    for progress in course_progress:
        for module_index, module in indexed_entries(progress.get("modules")):
            for lesson_index, lesson in indexed_entries(module.get("lessons")):
                cell = cells.get((module_index, lesson_index))
                if cell is None:
                    continue
                cell["startedCount"] += 1
                if lesson.get("status") == LESSON_COMPLETED:
                    cell["completionCount"] += 1
                if lesson.get("currentTime"):
                    view_times[(module_index, lesson_index)].append(lesson["currentTime"])

    for key, cell in cells.items():
        times = view_times.get(key)
        cell["averageViewTime"] = round(sum(times) / len(times), 2) if times else 0.0
        cell["dropOffRate"] = rate(cell["startedCount"] - cell["completionCount"], cell["startedCount"])
        cell["completionRate"] = rate(cell["completionCount"], enrolled)
    return modules_data, list(cells.values())


def quiz_analytics(results: List[dict], questions: List[dict]) -> dict:
    """Score statistics plus per-question success rates against the answer key"""
    answer_key = {q.get("id"): q.get("correctAnswer") for q in questions}
    scores = [r.get("score") or 0 for r in results]

    distribution = _empty_distribution()
    for score in scores:
        distribution[bucket(score)] += 1

    per_question: Dict[str, dict] = {}
    for result in results:
        for answer in result.get("answers") or []:
            question_id = answer.get("questionId")
            if not question_id:
                continue
            stats = per_question.setdefault(question_id, {"totalAttempts": 0, "correctAttempts": 0})
            stats["totalAttempts"] += 1
            if question_id in answer_key and answer.get("answer") == answer_key[question_id]:
                stats["correctAttempts"] += 1
    for stats in per_question.values():
        stats["successRate"] = rate(stats["correctAttempts"], stats["totalAttempts"])

    passed = sum(1 for r in results if r.get("passed"))
    return {
        "totalAssessments": len(results),
        "passRate": rate(passed, len(results)),
        "averageScore": round(sum(scores) / len(scores), 2) if scores else 0.0,
        "highestScore": max(scores, default=0),
        "lowestScore": min(scores, default=0),
        "scoreDistribution": distribution,
        "questionAnalysis": per_question,
    }


def progress_overview(course: dict, course_progress: List[dict], enrolled: int) -> dict:
    total_lessons = count_lessons(course)
    distribution = _empty_distribution()
    completed_users = in_progress_users = total_completed = 0
    total_percentage = 0.0

    for progress in course_progress:
        done = count_completed_lessons(progress)
        total_completed += done
        percentage = done / total_lessons * 100 if total_lessons else 0.0
        total_percentage += percentage
        distribution[bucket(percentage)] += 1
        if percentage >= 100:
            completed_users += 1
        elif percentage > 0:
            in_progress_users += 1

    return {
        "totalEnrollments": enrolled,
        "inProgressCount": in_progress_users,
        "completedCount": completed_users,
        "averageCompletion": round(total_percentage / enrolled, 2) if enrolled else 0.0,
        "totalCompletedLessons": total_completed,
        "progressDistribution": distribution,
    }


async def course_analytics(db: AsyncIOMotorDatabase, course: dict) -> dict:
    course_id = course["id"]
    enrolled = await db[ENROLLMENTS].count_documents({"courseIds": course_id})

    progress_records = await db[USER_PROGRESS].find(
        {f"courses.{course_id}": {"$exists": True}}
    ).to_list(length=None)
    course_progress = [(r.get("courses") or {}).get(course_id) or {} for r in progress_records]

    results = await db[ASSESSMENT_RESULTS].find({"courseId": course_id}).to_list(length=None)
    assessment = await db[QUESTIONS].find_one({"courseId": course_id})

    modules_data, heatmap = lesson_heatmap(course, course_progress, enrolled)
    return {
        "courseId": course_id,
        "courseTitle": course.get("title"),
        "enrollmentCount": enrolled,
        "totalLessons": count_lessons(course),
        "modulesData": modules_data,
        "attendanceHeatmap": heatmap,
        "quizAnalytics": quiz_analytics(results, (assessment or {}).get("questions") or []),
        "progressOverview": progress_overview(course, course_progress, enrolled),
    }


# ==================== SYSTEM ANALYTICS ====================

def months_ago(now: datetime, months: int) -> datetime:
    """First day of the month `months` before now's month"""
    month_index = now.year * 12 + now.month - 1 - months
    return datetime(month_index // 12, month_index % 12 + 1, 1)


def _monthly_series(counts: Counter, value_key: str) -> List[dict]:
    series = []
    for (year, month), count in sorted(counts.items()):
        label = datetime(year, month, 1).strftime("%b")
        series.append({"month": label, "year": year, value_key: count, "date": f"{label}-{year}"})
    return series


async def system_analytics(db: AsyncIOMotorDatabase, now: Optional[datetime] = None) -> dict:
    """Platform-wide totals, monthly trends and recent learner activity"""
    now = now or datetime.utcnow()

    users = await db[USERS].find({}, {"email": 1, "name": 1, "lastLogin": 1}).to_list(length=None)
    names = {u.get("email"): u.get("name") for u in users}
    active_since = now - timedelta(days=ACTIVE_USER_DAYS)
    logins = [u["lastLogin"] for u in users if isinstance(u.get("lastLogin"), datetime)]

    courses = await db[COURSES].find(
        {}, {"id": 1, "title": 1, "instructor": 1, "syllabus": 1}
    ).to_list(length=None)
    courses_by_id = {c.get("id"): c for c in courses}

    enrollments = await db[ENROLLMENTS].find({}, {"courseIds": 1}).to_list(length=None)
    enrolled_per_course = Counter(cid for e in enrollments for cid in e.get("courseIds") or [])

    total_assessments = await db[ASSESSMENT_RESULTS].count_documents({})
    passed_assessments = await db[ASSESSMENT_RESULTS].count_documents({"passed": True})

    progress_records = await db[USER_PROGRESS].find({}).to_list(length=None)
    trend_start = months_ago(now, ENROLLMENT_TREND_MONTHS)
    enrollments_by_month = Counter()
    started = finished = 0
    activity = []
    for record in progress_records:
        for course_id, entry in (record.get("courses") or {}).items():
            if not isinstance(entry, dict):
                continue
            started += 1
            course = courses_by_id.get(course_id)
            if course and completion_percentage(course, entry) == 100:
                finished += 1

            enrolled_at = entry.get("enrolledAt")
            if isinstance(enrolled_at, datetime) and enrolled_at >= trend_start:
                enrollments_by_month[(enrolled_at.year, enrolled_at.month)] += 1

            last_accessed = entry.get("lastAccessed")
            if course and isinstance(last_accessed, datetime):
                activity.append((last_accessed, record["userEmail"], course))

    activity.sort(key=lambda item: item[0], reverse=True)
    popular = sorted(courses, key=lambda c: enrolled_per_course[c.get("id")], reverse=True)

    return {
        "totalUsers": len(users),
        "activeUsers": sum(1 for login in logins if login >= active_since),
        "engagedUsers": len(progress_records),
        "totalCourses": len(courses),
        "totalEnrollments": sum(enrolled_per_course.values()),
        "totalAssessments": total_assessments,
        "passedAssessments": passed_assessments,
        "assessmentPassRate": rate(passed_assessments, total_assessments),
        "overallCompletionRate": rate(finished, started),
        "enrollmentsByMonth": _monthly_series(enrollments_by_month, "count"),
        "userEngagementOverTime": _monthly_series(
            Counter((login.year, login.month) for login in logins), "users",
        ),
        "popularCourses": [
            {
                "id": c.get("id"),
                "title": c.get("title"),
                "instructor": c.get("instructor"),
                "enrollmentCount": enrolled_per_course[c.get("id")],
            }
            for c in popular[:POPULAR_COURSES]
        ],
        "latestActivity": [
            {
                "userName": names.get(email),
                "userEmail": email,
                "courseTitle": course.get("title"),
                "courseId": course.get("id"),
                "lastUpdateDate": accessed,
                "type": "progress",
            }
            for accessed, email, course in activity[:LATEST_ACTIVITY]
        ],
    }
