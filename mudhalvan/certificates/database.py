import logging
import secrets
import time
from datetime import datetime
from typing import Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from mudhalvan.database import CERTIFICATES

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
RANDOM_PART_LENGTH = 6
MAX_ISSUE_ATTEMPTS = 5


class CertificateIdConflict(Exception):
    """Every generated certificate id collided with a stored one"""


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_certificate_id() -> str:
    """
    CERT-{base36 millis}-{base36 random}, upper-cased
    Nothing about the holder goes into the id. Uniqueness is enforced by
    the unique index on certificateId.
    """
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(BASE36_DIGITS) for _ in range(RANDOM_PART_LENGTH))
    return f"CERT-{timestamp}-{random_part}".upper()


# ==================== ISSUANCE ====================

async def get_user_certificate(db: AsyncIOMotorDatabase, user_email: str, course_id: str) -> Optional[dict]:
    return await db[CERTIFICATES].find_one({"userEmail": user_email, "courseId": course_id})


async def issue_certificate(
    db: AsyncIOMotorDatabase,
    user_email: str,
    course_id: str,
    user_name: str,
    course_name: str,
    instructor_name: Optional[str] = None,
) -> Tuple[dict, bool]:
    """
    Get or create the user's certificate for a course

    Returns (certificate, created). (userEmail, courseId) is unique, so a
    racing request gets back the certificate the winner stored. A fresh id
    is drawn when only the certificateId collides.

    Raises:
        CertificateIdConflict: after MAX_ISSUE_ATTEMPTS collisions
    """
    existing = await get_user_certificate(db, user_email, course_id)
    if existing:
        return existing, False

    for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
        certificate = {
            "userEmail": user_email,
            "courseId": course_id,
            "certificateId": generate_certificate_id(),
            "userName": user_name,
            "courseName": course_name,
            "instructorName": instructor_name or "Course Instructor",
            "issuedDate": datetime.utcnow(),
            "verified": True,
        }
        try:
            await db[CERTIFICATES].insert_one(certificate)
        except DuplicateKeyError:
            # A concurrent request may have issued this user's certificate first
            existing = await get_user_certificate(db, user_email, course_id)
            if existing:
                return existing, False
            logger.warning("Certificate id collision on attempt %d", attempt)
            continue
        logger.info("Created new certificate: %s", certificate["certificateId"])
        return certificate, True

    raise CertificateIdConflict(f"could not allocate a certificate id for {course_id}")


# ==================== VERIFICATION ====================

async def find_verified_certificate(db: AsyncIOMotorDatabase, certificate_id: str) -> Optional[dict]:
    """Unknown and unverified ids both come back as None"""
    return await db[CERTIFICATES].find_one({"certificateId": certificate_id, "verified": True})
