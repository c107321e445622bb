"""
Course Discussion Router
File: mudhalvan/discussions/router.py

Enrolled learners read and post short messages on a course's board.
Posting is rate limited per user and course, and filtered for profanity.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.auth.database import get_user_by_email
from mudhalvan.auth.session import Session, require_email_session
from mudhalvan.config import (
    DISCUSSION_MAX_MESSAGE_LENGTH, DISCUSSION_PAGE_SIZE, DISCUSSION_RATE_LIMIT,
    DISCUSSION_RATE_WINDOW_SECONDS,
)
from mudhalvan.courses.database import get_enrolled_course_ids
from mudhalvan.database import get_db, serialize_many
from mudhalvan.discussions import database as discussions_db
from mudhalvan.discussions.moderation import contains_profanity
from mudhalvan.discussions.schemas import DiscussionMessageIn

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Discussions"])


@router.get("/courses/{course_id}/discussion")
async def get_discussion(
    course_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DISCUSSION_PAGE_SIZE, ge=1, le=100),
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        if course_id not in await get_enrolled_course_ids(db, session.email):
            raise HTTPException(status_code=403, detail="You must be enrolled in this course to view discussions")

        messages, total = await discussions_db.list_messages(db, course_id, page, limit)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching discussion messages")
        raise HTTPException(status_code=500, detail="Failed to fetch messages")

    return {
        "messages": serialize_many(messages),
        "totalCount": total,
        "hasMore": total > page * limit,
    }


@router.post("/courses/{course_id}/discussion")
async def post_discussion_message(
    course_id: str,
    data: DiscussionMessageIn,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    content = (data.content or "").strip()
    if not content:
        raise HTTPException(status_code=400, detail="Message content is required")
    if len(content) > DISCUSSION_MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Message is too long (maximum {DISCUSSION_MAX_MESSAGE_LENGTH} characters)",
        )

    try:
        if course_id not in await get_enrolled_course_ids(db, session.email):
            raise HTTPException(status_code=403, detail="You must be enrolled in this course to post messages")

        recent = await discussions_db.count_recent_messages(
            db, session.email, course_id, DISCUSSION_RATE_WINDOW_SECONDS,
        )
        if recent >= DISCUSSION_RATE_LIMIT:
            raise HTTPException(status_code=429, detail="You're sending messages too quickly. Please wait a moment.")

        if contains_profanity(content):
            raise HTTPException(
                status_code=400,
                detail="Your message contains inappropriate language that is not allowed in the discussion.",
            )

        user = await get_user_by_email(db, session.email) or {}
        message_id = await discussions_db.post_message(
            db, course_id, session.email, user.get("realName") or user.get("name") or session.name, content,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error posting discussion message")
        raise HTTPException(status_code=500, detail="Failed to post message")

    return {"id": message_id, "message": "Message posted successfully"}
