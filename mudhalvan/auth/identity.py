"""
Identity Resolver
Maps a session to the canonical {id, name, email} profile.

Each lookup strategy returns a tagged LookupResult and first_found()
runs them in order, stopping at the first Found. A session id that is not
a valid ObjectId yields Malformed and resolution moves on.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.auth.session import Session
from mudhalvan.database import USERS

logger = logging.getLogger(__name__)


# ==================== LOOKUP RESULTS ====================

@dataclass(frozen=True)
class Found:
    document: dict


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Malformed:
    reason: str


LookupResult = Union[Found, NotFound, Malformed]
LookupStep = Callable[[], Awaitable[LookupResult]]


async def first_found(*steps: LookupStep) -> LookupResult:
    """Run lookup steps in order, returning the first Found or the last miss"""
    result: LookupResult = NotFound()
    for step in steps:
        result = await step()
        if isinstance(result, Found):
            return result
        if isinstance(result, Malformed):
            logger.debug("Identity lookup skipped: %s", result.reason)
    return result


# ==================== STEPS ====================

def by_object_id(db: AsyncIOMotorDatabase, user_id: Optional[str]) -> LookupStep:
    async def step() -> LookupResult:
        if not user_id or not ObjectId.is_valid(user_id):
            return Malformed(f"not an ObjectId: {user_id!r}")
        doc = await db[USERS].find_one({"_id": ObjectId(user_id)})
        return Found(doc) if doc else NotFound()
    return step


def by_external_id(db: AsyncIOMotorDatabase, user_id: Optional[str]) -> LookupStep:
    async def step() -> LookupResult:
        if not user_id:
            return Malformed("session has no user id")
        doc = await db[USERS].find_one({"googleId": user_id})
        return Found(doc) if doc else NotFound()
    return step


def by_email(db: AsyncIOMotorDatabase, email: Optional[str]) -> LookupStep:
    async def step() -> LookupResult:
        if not email:
            return Malformed("session has no email")
        doc = await db[USERS].find_one({"email": email})
        return Found(doc) if doc else NotFound()
    return step


# ==================== RESOLVER ====================

def placeholder_profile(session: Session) -> dict:
    return {
        "id": session.user_id,
        "name": session.name or "User",
        "email": session.email or "",
    }


async def resolve_user_profile(db: AsyncIOMotorDatabase, session: Session) -> dict:
    """Resolve the caller's profile; falls back to session fields, never raises on a miss"""
    try:
        result = await first_found(
            by_object_id(db, session.user_id),
            by_external_id(db, session.user_id),
            by_email(db, session.email),
        )
    except Exception:
        logger.exception("Identity lookup failed, using session data")
        return placeholder_profile(session)

    if not isinstance(result, Found):
        logger.info("User not found in database, using session data")
        return placeholder_profile(session)

    user = result.document
    return {
        "id": str(user["_id"]),
        "name": user.get("name") or session.name or "User",
        "email": user.get("email") or session.email or "",
    }
