import boto3
import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from mudhalvan.auth.session import issue_session_token
from mudhalvan.config import DEFAULT_SUPER_ADMIN_EMAIL, Settings
from mudhalvan.database import COURSES, create_indexes
from mudhalvan.main import create_app

SAMPLE_COURSE = {
    "id": "cs101",
    "title": "Intro to Computer Science",
    "description": "Programming fundamentals",
    "instructor": "Ada Lovelace",
    "level": "Beginner",
    "duration": "6 weeks",
    "students": 0,
    "language": "English",
    "certificate": True,
    "syllabus": [
        {
            "title": "Basics",
            "description": "Getting started",
            "duration": "1 week",
            "lessons": [
                {"title": "Variables", "duration": "10 min"},
                {"title": "Loops", "duration": "20 min"},
            ],
        },
    ],
}


@pytest.fixture
def settings():
    return Settings(
        jwt_secret_key="test-secret",
        s3_bucket_name="test-bucket",
        aws_region="us-east-1",
        log_level="WARNING",
    )


@pytest.fixture
async def db():
    database = AsyncMongoMockClient()["mudhalvan_test"]
    await create_indexes(database)
    return database


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def app(settings, db, s3_client):
    return create_app(settings=settings, db=db, s3_client=s3_client)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers(settings):
    def make(email="learner@example.com", user_id="user-1", name="Learner", role=None):
        token = issue_session_token(settings, user_id, email, name=name, role=role)
        return {"Authorization": f"Bearer {token}"}
    return make


@pytest.fixture
def student_headers(auth_headers):
    return auth_headers()


@pytest.fixture
def instructor_headers(auth_headers):
    return auth_headers(email="instructor@example.com", user_id="user-2", name="Ada Lovelace", role="instructor")


@pytest.fixture
def super_admin_headers(auth_headers):
    return auth_headers(email=DEFAULT_SUPER_ADMIN_EMAIL, user_id="user-0", name="Admin")


@pytest.fixture
async def course(db):
    doc = dict(SAMPLE_COURSE)
    await db[COURSES].insert_one(doc)
    return SAMPLE_COURSE
