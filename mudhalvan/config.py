"""
Mudhalvan Configuration
Database, session and attendance settings read from the environment
"""

import os
from dataclasses import dataclass, field

# Session tokens
JWT_ALGORITHM = "HS256"
SESSION_MAX_AGE_SECONDS = 30 * 24 * 60 * 60

DEFAULT_SUPER_ADMIN_EMAIL = "karthickrajans.21cse@kongu.edu"

# Assessment defaults
DEFAULT_TIME_PER_QUESTION = 60
DEFAULT_PASSING_SCORE = 75

# Upload signing
UPLOAD_URL_EXPIRY_SECONDS = 600

# Course discussions
DISCUSSION_MAX_MESSAGE_LENGTH = 500
DISCUSSION_RATE_LIMIT = 3
DISCUSSION_RATE_WINDOW_SECONDS = 10
DISCUSSION_PAGE_SIZE = 20

# Analytics windows
ACTIVE_USER_DAYS = 30
ENROLLMENT_TREND_MONTHS = 6


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


@dataclass
class AttendanceThresholds:
    """Boundaries that decide when a watch session raises a warning"""
    inactivity_seconds: float = 15.0
    seek_tolerance_seconds: float = 3.0
    min_seek_seconds: float = 5.0
    completion_percent: float = 90.0
    record_complete_ratio: float = 0.95


@dataclass
class Settings:
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "Mudhalvan"
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = JWT_ALGORITHM
    session_max_age_seconds: int = SESSION_MAX_AGE_SECONDS
    super_admin_email: str = DEFAULT_SUPER_ADMIN_EMAIL
    app_url: str = "http://localhost:3000"
    aws_region: str = "us-east-1"
    s3_bucket_name: str = ""
    allow_public_acl: bool = False
    log_level: str = "INFO"
    attendance: AttendanceThresholds = field(default_factory=AttendanceThresholds)

    @classmethod
    def from_env(cls) -> "Settings":
        attendance = AttendanceThresholds(
            inactivity_seconds=float(os.getenv("ATTENDANCE_INACTIVITY_SECONDS", "15")),
            seek_tolerance_seconds=float(os.getenv("ATTENDANCE_SEEK_TOLERANCE_SECONDS", "3")),
            min_seek_seconds=float(os.getenv("ATTENDANCE_MIN_SEEK_SECONDS", "5")),
            completion_percent=float(os.getenv("LESSON_COMPLETION_PERCENT", "90")),
        )
        return cls(
            mongo_url=os.getenv("MONGO_URL", "mongodb://localhost:27017"),
            mongo_db_name=os.getenv("MONGO_DB_NAME", "Mudhalvan"),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", "change-me"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", JWT_ALGORITHM),
            session_max_age_seconds=int(os.getenv("SESSION_MAX_AGE_SECONDS", str(SESSION_MAX_AGE_SECONDS))),
            super_admin_email=os.getenv("SUPER_ADMIN_EMAIL", DEFAULT_SUPER_ADMIN_EMAIL),
            app_url=os.getenv("APP_URL", "http://localhost:3000"),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            s3_bucket_name=os.getenv("S3_BUCKET_NAME", ""),
            allow_public_acl=_env_bool("ALLOW_PUBLIC_ACL"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            attendance=attendance,
        )
