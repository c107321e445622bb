"""
Mudhalvan LMS - Main Application
Course catalog, enrollment, progress/attendance, assessments and certificates

Run with: uvicorn --factory mudhalvan.main:create_app
"""

import logging
from datetime import datetime
from typing import Any, Optional

import boto3
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorDatabase

from mudhalvan.analytics.router import router as analytics_router
from mudhalvan.assessments.router import router as assessments_router
from mudhalvan.auth.router import router as auth_router
from mudhalvan.certificates.router import router as certificates_router
from mudhalvan.config import Settings
from mudhalvan.courses.course_router import router as course_router
from mudhalvan.courses.enrollment_router import router as enrollment_router
from mudhalvan.database import create_database, create_indexes
from mudhalvan.discussions.router import router as discussions_router
from mudhalvan.progress.router import router as progress_router
from mudhalvan.uploads.router import router as uploads_router

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[AsyncIOMotorDatabase] = None,
    s3_client: Optional[Any] = None,
) -> FastAPI:
    """
    Build the application around explicitly constructed storage clients.
    Tests pass their own database and S3 client.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Mudhalvan LMS")
    app.state.settings = settings
    app.state.db = db if db is not None else create_database(settings)
    app.state.s3_client = s3_client or boto3.client("s3", region_name=settings.aws_region)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        await create_indexes(app.state.db)
        logger.info("Mudhalvan LMS started")

    # ==================== ROUTER REGISTRATION ====================
    app.include_router(auth_router, prefix="/api")
    app.include_router(course_router, prefix="/api")
    app.include_router(enrollment_router, prefix="/api")
    app.include_router(progress_router, prefix="/api")
    app.include_router(assessments_router, prefix="/api")
    app.include_router(certificates_router, prefix="/api")
    app.include_router(discussions_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")
    app.include_router(uploads_router, prefix="/api")
    # ============================================================

    @app.get("/health")
    async def health():
        return {"status": "UP", "timestamp": datetime.utcnow().isoformat()}

    return app
