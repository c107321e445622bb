"""
Auth & User Router
File: mudhalvan/auth/router.py

Signup/login for locally registered users, the caller's profile, and
role assignment.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.auth import database as users_db
from mudhalvan.auth.identity import resolve_user_profile
from mudhalvan.auth.schemas import (
    LoginRequest, RealNameRequest, SetRoleRequest, SignupRequest, UserInfoUpdate,
    validate_real_name,
)
from mudhalvan.auth.session import (
    Session, get_settings, issue_session_token, require_email_session, require_session,
)
from mudhalvan.config import Settings
from mudhalvan.database import get_db, serialize_many

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


# ==================== SIGNUP / LOGIN ====================

@router.post("/auth/signup", status_code=201)
async def signup(data: SignupRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        user_id = await users_db.create_user(db, data.name, data.email, data.password)
    except Exception:
        logger.exception("Signup failed for %s", data.email)
        raise HTTPException(status_code=500, detail="Internal server error")

    if user_id is None:
        raise HTTPException(status_code=400, detail="User already exists")

    logger.info("Registered user %s", data.email)
    return {"message": "User created successfully", "userId": user_id}


@router.post("/auth/login")
async def login(
    data: LoginRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = await users_db.authenticate_user(db, data.email, data.password)
    except Exception:
        logger.exception("Login failed for %s", data.email)
        raise HTTPException(status_code=500, detail="Internal server error")

    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user_id = str(user["_id"])
    token = issue_session_token(
        settings, user_id, user["email"], name=user.get("name"), role=user.get("role"),
    )
    return {
        "token": token,
        "user": {"id": user_id, "name": user.get("name"), "email": user["email"], "role": user.get("role")},
    }


# ==================== PROFILE ====================

@router.get("/user")
async def get_user(session: Session = Depends(require_session), db: AsyncIOMotorDatabase = Depends(get_db)):
    """Caller profile via the id → external id → email fallback chain"""
    return await resolve_user_profile(db, session)


@router.get("/user-info")
async def get_user_info(
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        user = await users_db.get_user_by_email(db, session.email)
    except Exception:
        logger.exception("Error fetching user info")
        raise HTTPException(status_code=500, detail="Failed to fetch user info")

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return {
        "_id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "emailPreferences": user.get("emailPreferences"),
    }


@router.put("/user-info")
async def update_user_info(
    data: UserInfoUpdate,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    updates = {}
    if data.name:
        updates["name"] = data.name
    if data.emailPreferences:
        updates["emailPreferences"] = data.emailPreferences
    if not updates:
        raise HTTPException(status_code=400, detail="Nothing to update")

    try:
        matched = await users_db.update_user_info(db, session.email, updates)
    except Exception:
        logger.exception("Error updating user info")
        raise HTTPException(status_code=500, detail="Failed to update user info")

    if not matched:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}


@router.post("/user/realname")
async def save_real_name(
    data: RealNameRequest,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        real_name = validate_real_name(data.realName)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        matched = await users_db.set_real_name(db, session.email, real_name)
    except Exception:
        logger.exception("Error saving real name")
        raise HTTPException(status_code=500, detail="Failed to save real name")

    if not matched:
        raise HTTPException(status_code=404, detail="User not found")

    return {"success": True, "message": "Real name saved successfully"}


# ==================== ROLES ====================

@router.post("/user/set-role")
async def set_instructor_role(
    data: SetRoleRequest,
    session: Session = Depends(require_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """
    Promote a user to instructor.
    Only a logged-in session is checked here; see DESIGN.md open questions.
    """
    if not data.email:
        raise HTTPException(status_code=400, detail="Email is required")

    try:
        updated = await users_db.set_role(db, data.email)
    except Exception:
        logger.exception("Error setting user role")
        raise HTTPException(status_code=500, detail="Failed to update user role")

    if not updated:
        raise HTTPException(status_code=404, detail="User not found")

    logger.info("%s promoted %s to instructor", session.email, data.email)
    return {"message": "User role updated to instructor successfully", "email": data.email}


@router.get("/instructors")
async def get_instructors(
    session: Session = Depends(require_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        instructors = await users_db.list_instructors(db)
    except Exception:
        logger.exception("Error fetching instructors")
        raise HTTPException(status_code=500, detail="Failed to fetch instructors")

    return {"instructors": serialize_many(instructors), "count": len(instructors)}
