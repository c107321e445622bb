import secrets
import string
import time
from datetime import datetime
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.config import DEFAULT_PASSING_SCORE, DEFAULT_TIME_PER_QUESTION
from mudhalvan.database import ASSESSMENT_RESULTS, COURSES, QUESTIONS
from mudhalvan.progress.database import round_half_up

QUESTION_ID_ALPHABET = string.ascii_lowercase + string.digits
QUESTION_ID_SUFFIX_LENGTH = 9


# ==================== QUESTION SETS ====================

def generate_question_id(course_id: str) -> str:
    """{courseId}-q{millis}-{suffix}; the random suffix separates ids made in the same millisecond"""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(QUESTION_ID_ALPHABET) for _ in range(QUESTION_ID_SUFFIX_LENGTH))
    return f"{course_id}-q{millis}-{suffix}"


async def upsert_questions(db: AsyncIOMotorDatabase, course: dict, questions: List[dict]) -> dict:
    """
    Replace the course's whole question set
    One assessment document per course id; the last write wins.
    """
    course_id = course["id"]
    assessment = {
        "courseId": course_id,
        "title": course.get("title"),
        "description": f"Assessment for {course.get('title')}",
        "timePerQuestion": DEFAULT_TIME_PER_QUESTION,
        "passingScore": DEFAULT_PASSING_SCORE,
        "questions": [
            {**q, "id": q.get("id") or generate_question_id(course_id)}
            for q in questions
        ],
        "updatedAt": datetime.utcnow(),
    }
    await db[QUESTIONS].update_one({"courseId": course_id}, {"$set": assessment}, upsert=True)
    return assessment


async def get_assessment(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return await db[QUESTIONS].find_one({"courseId": course_id})


def public_assessment(assessment: dict) -> dict:
    """Assessment as shown to a learner, without the answer key"""
    shown = {k: v for k, v in assessment.items() if k != "questions"}
    shown["questions"] = [
        {k: v for k, v in q.items() if k != "correctAnswer"}
        for q in assessment.get("questions", [])
    ]
    return shown


def score_answers(questions: List[dict], answers: List[dict]) -> Tuple[int, int, int]:
    """
    Answers are matched to questions by position; both the question id
    and the answer must match.

    Returns (correct, total, score percentage)
    """
    correct = 0
    for index, answer in enumerate(answers):
        if index >= len(questions):
            break
        question = questions[index]
        if answer.get("questionId") == question.get("id") and answer.get("answer") == question.get("correctAnswer"):
            correct += 1

    total = len(questions)
    score = round_half_up(correct / total * 100) if total else 0
    return correct, total, score


# ==================== RESULTS ====================

async def record_result(
    db: AsyncIOMotorDatabase,
    user_email: str,
    course_id: str,
    score: int,
    passed: bool,
    assessment_title: Optional[str] = None,
    answers: Optional[List[dict]] = None,
) -> dict:
    """Append an attempt; earlier attempts are kept"""
    result = {
        "userEmail": user_email,
        "courseId": course_id,
        "score": score,
        "passed": passed,
        "completedAt": datetime.utcnow(),
        "assessmentTitle": assessment_title or "Assessment",
    }
    if answers is not None:
        result["answers"] = answers
    await db[ASSESSMENT_RESULTS].insert_one(result)
    return result


async def has_passed(db: AsyncIOMotorDatabase, user_email: str, course_id: str) -> bool:
    result = await db[ASSESSMENT_RESULTS].find_one(
        {"userEmail": user_email, "courseId": course_id, "passed": True}
    )
    return result is not None


async def get_latest_result(db: AsyncIOMotorDatabase, user_email: str, course_id: str) -> Optional[dict]:
    results = await db[ASSESSMENT_RESULTS].find(
        {"userEmail": user_email, "courseId": course_id}
    ).sort("completedAt", -1).to_list(length=1)
    return results[0] if results else None


async def list_results_for_user(db: AsyncIOMotorDatabase, user_email: str) -> List[dict]:
    """Results joined with course titles so the client needs no follow-up lookups"""
    results = await db[ASSESSMENT_RESULTS].find({"userEmail": user_email}).to_list(length=None)

    course_ids = list({r["courseId"] for r in results})
    courses = await db[COURSES].find({"id": {"$in": course_ids}}, {"id": 1, "title": 1}).to_list(length=None)
    titles = {c["id"]: c.get("title") for c in courses}

    return [
        {
            "courseId": r["courseId"],
            "courseName": titles.get(r["courseId"]) or "Unknown Course",
            "score": r.get("score"),
            "passed": r.get("passed"),
            "completedAt": r.get("completedAt") or datetime.utcnow(),
            "assessmentTitle": r.get("assessmentTitle") or "Assessment",
        }
        for r in results
    ]
