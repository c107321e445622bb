from datetime import datetime
from typing import List, Optional

import bcrypt
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from mudhalvan.auth.permissions import INSTRUCTOR_ROLE, STUDENT_ROLE
from mudhalvan.database import USERS

BCRYPT_ROUNDS = 12


# ==================== PASSWORDS ====================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ==================== USER CRUD ====================

async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
    return await db[USERS].find_one({"email": email})


async def create_user(db: AsyncIOMotorDatabase, name: str, email: str, password: str) -> Optional[str]:
    """
    Register a local user
    Returns the new user id, or None when the email is already taken
    """
    if await get_user_by_email(db, email):
        return None

    user = {
        "name": name,
        "email": email,
        "password": hash_password(password),
        "role": STUDENT_ROLE,
        "provider": "credentials",
        "createdAt": datetime.utcnow(),
    }
    try:
        result = await db[USERS].insert_one(user)
    except DuplicateKeyError:
        return None
    return str(result.inserted_id)


async def authenticate_user(db: AsyncIOMotorDatabase, email: str, password: str) -> Optional[dict]:
    """Check credentials and stamp lastLogin; None on any mismatch"""
    user = await get_user_by_email(db, email)
    if not user or not user.get("password"):
        return None
    if not check_password(password, user["password"]):
        return None
    user["lastLogin"] = datetime.utcnow()
    await db[USERS].update_one({"_id": user["_id"]}, {"$set": {"lastLogin": user["lastLogin"]}})
    return user


async def set_real_name(db: AsyncIOMotorDatabase, email: str, real_name: str) -> bool:
    result = await db[USERS].update_one({"email": email}, {"$set": {"realName": real_name}})
    return result.matched_count > 0


async def update_user_info(db: AsyncIOMotorDatabase, email: str, updates: dict) -> bool:
    result = await db[USERS].update_one({"email": email}, {"$set": updates})
    return result.matched_count > 0


async def set_role(db: AsyncIOMotorDatabase, email: str, role: str = INSTRUCTOR_ROLE) -> bool:
    """Role assignment; the only path that changes a user's role"""
    if not await get_user_by_email(db, email):
        return False
    await db[USERS].update_one({"email": email}, {"$set": {"role": role}})
    return True


async def list_instructors(db: AsyncIOMotorDatabase) -> List[dict]:
    cursor = db[USERS].find({"role": INSTRUCTOR_ROLE}, {"_id": 1, "name": 1, "email": 1})
    return await cursor.to_list(length=None)
