import base64
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from mudhalvan.assessments.database import has_passed
from mudhalvan.auth.session import Session, get_settings, require_email_session
from mudhalvan.certificates.database import find_verified_certificate, issue_certificate
from mudhalvan.certificates.render import render_certificate_png
from mudhalvan.config import Settings
from mudhalvan.courses.database import get_course
from mudhalvan.database import get_db, serialize_mongo
from mudhalvan.progress.database import has_earned_certificate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Certificates"])

NOT_FOUND_OR_INVALID = "Certificate not found or invalid"


class CertificateRequest(BaseModel):
    userName: Optional[str] = None
    courseName: Optional[str] = None
    instructorName: Optional[str] = None
    courseId: Optional[str] = None
    completionDate: Optional[str] = None


# ==================== ENDPOINTS ====================

@router.post("/certificate/generate")
async def generate_certificate(
    data: CertificateRequest,
    session: Session = Depends(require_email_session),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not data.userName or not data.courseName or not data.courseId:
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        # Either a passed attempt or the progress flag qualifies
        if not (await has_passed(db, session.email, data.courseId)
                or await has_earned_certificate(db, session.email, data.courseId)):
            raise HTTPException(status_code=403, detail="You have not passed the assessment for this course")

        certificate, created = await issue_certificate(
            db, session.email, data.courseId, data.userName, data.courseName, data.instructorName,
        )
        if not created:
            logger.info("Using existing certificate: %s", certificate["certificateId"])

        png = render_certificate_png(certificate, settings.app_url)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error generating certificate")
        raise HTTPException(status_code=500, detail="Failed to generate certificate")

    return {
        "certificateId": certificate["certificateId"],
        "certificate": base64.b64encode(png).decode("ascii"),
        "message": "Certificate generated successfully",
    }


@router.get("/certificate/verify/{certificate_id}")
async def verify_certificate(certificate_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Public lookup; unknown and unverified ids get the same answer"""
    if not certificate_id.strip():
        raise HTTPException(status_code=400, detail="Certificate ID is required")

    try:
        certificate = await find_verified_certificate(db, certificate_id)
        if not certificate:
            return JSONResponse(status_code=404, content={"valid": False, "message": NOT_FOUND_OR_INVALID})

        course = await get_course(db, certificate["courseId"])
    except Exception:
        logger.exception("Error verifying certificate")
        raise HTTPException(status_code=500, detail="Failed to verify certificate")

    return {
        "valid": True,
        "certificate": serialize_mongo({
            "id": certificate["certificateId"],
            "userName": certificate.get("userName"),
            "courseName": certificate.get("courseName"),
            "instructorName": certificate.get("instructorName"),
            "issuedDate": certificate.get("issuedDate"),
            "courseId": certificate["courseId"],
            "courseDescription": (course or {}).get("description", ""),
        }),
    }
