from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.database import DISCUSSIONS, USERS


async def list_messages(
    db: AsyncIOMotorDatabase, course_id: str, page: int, limit: int,
) -> Tuple[List[dict], int]:
    """
    One page of a course's messages, newest first, with author names
    resolved from the users collection

    Returns (messages, total message count)
    """
    total = await db[DISCUSSIONS].count_documents({"courseId": course_id})
    messages = await db[DISCUSSIONS].find({"courseId": course_id}) \
        .sort("timestamp", -1).skip((page - 1) * limit).limit(limit).to_list(length=limit)

    emails = list({m["userEmail"] for m in messages})
    users = await db[USERS].find(
        {"email": {"$in": emails}}, {"email": 1, "name": 1, "realName": 1, "image": 1}
    ).to_list(length=None)
    authors = {u["email"]: u for u in users}

    enriched = []
    for message in messages:
        author = authors.get(message["userEmail"], {})
        enriched.append({
            "id": str(message["_id"]),
            "userId": message["userEmail"],
            "userName": author.get("realName") or author.get("name") or message.get("userName") or "Unknown User",
            "userImage": author.get("image"),
            "content": message["content"],
            "timestamp": message["timestamp"],
        })
    return enriched, total


async def count_recent_messages(
    db: AsyncIOMotorDatabase, user_email: str, course_id: str, window_seconds: float,
) -> int:
    since = datetime.utcnow() - timedelta(seconds=window_seconds)
    return await db[DISCUSSIONS].count_documents(
        {"userEmail": user_email, "courseId": course_id, "timestamp": {"$gte": since}}
    )


async def post_message(
    db: AsyncIOMotorDatabase, course_id: str, user_email: str, user_name: Optional[str], content: str,
) -> str:
    result = await db[DISCUSSIONS].insert_one({
        "courseId": course_id,
        "userEmail": user_email,
        "userName": user_name,
        "content": content,
        "timestamp": datetime.utcnow(),
    })
    return str(result.inserted_id)
