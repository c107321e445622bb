import base64
import re

import pytest

from mudhalvan.certificates import database as certificates_db
from mudhalvan.database import ASSESSMENT_RESULTS, CERTIFICATES

CERTIFICATE_ID = re.compile(r"^CERT-[0-9A-Z]+-[0-9A-Z]{6}$")


def test_certificate_id_format():
    certificate_id = certificates_db.generate_certificate_id()
    assert CERTIFICATE_ID.match(certificate_id)


def test_base36():
    assert certificates_db.to_base36(0) == "0"
    assert certificates_db.to_base36(35) == "z"
    assert certificates_db.to_base36(36) == "10"


async def test_issue_then_verify_round_trip(client, db, course):
    certificate, created = await certificates_db.issue_certificate(
        db, "learner@example.com", "cs101", "Learner Name", "Intro to Computer Science", "Ada Lovelace",
    )
    assert created

    response = await client.get(f"/api/certificate/verify/{certificate['certificateId']}")
    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["certificate"]["userName"] == "Learner Name"
    assert body["certificate"]["courseName"] == "Intro to Computer Science"
    assert body["certificate"]["instructorName"] == "Ada Lovelace"
    assert body["certificate"]["courseId"] == "cs101"
    assert body["certificate"]["courseDescription"] == course["description"]


async def test_issue_is_idempotent_per_user_and_course(db):
    first, created = await certificates_db.issue_certificate(db, "a@example.com", "cs101", "A", "CS")
    second, created_again = await certificates_db.issue_certificate(db, "a@example.com", "cs101", "A", "CS")

    assert created and not created_again
    assert first["certificateId"] == second["certificateId"]
    assert first["instructorName"] == "Course Instructor"


async def test_unknown_and_unverified_look_the_same(client, db):
    await db[CERTIFICATES].insert_one({
        "certificateId": "CERT-HIDDEN-000000", "userName": "X", "courseName": "Y",
        "courseId": "cs101", "verified": False,
    })

    unverified = await client.get("/api/certificate/verify/CERT-HIDDEN-000000")
    unknown = await client.get("/api/certificate/verify/CERT-NOPE-000000")

    assert unverified.status_code == unknown.status_code == 404
    assert unverified.json() == unknown.json() == {"valid": False, "message": "Certificate not found or invalid"}


async def test_id_collision_draws_a_new_id(db, monkeypatch):
    await db[CERTIFICATES].insert_one({"certificateId": "CERT-TAKEN", "userEmail": "x@example.com",
                                       "courseId": "other", "verified": True})
    ids = iter(["CERT-TAKEN", "CERT-FRESH"])
    monkeypatch.setattr(certificates_db, "generate_certificate_id", lambda: next(ids))

    certificate, created = await certificates_db.issue_certificate(db, "a@example.com", "cs101", "A", "CS")

    assert created
    assert certificate["certificateId"] == "CERT-FRESH"


async def test_gives_up_after_repeated_collisions(db, monkeypatch):
    await db[CERTIFICATES].insert_one({"certificateId": "CERT-TAKEN", "userEmail": "x@example.com",
                                       "courseId": "other", "verified": True})
    monkeypatch.setattr(certificates_db, "generate_certificate_id", lambda: "CERT-TAKEN")

    with pytest.raises(certificates_db.CertificateIdConflict):
        await certificates_db.issue_certificate(db, "a@example.com", "cs101", "A", "CS")


async def test_generate_requires_passed_assessment(client, db, course, student_headers):
    body = {"userName": "Learner", "courseName": "Intro", "courseId": "cs101", "instructorName": "Ada"}

    assert (await client.post("/api/certificate/generate", json=body)).status_code == 401
    missing = await client.post("/api/certificate/generate", json={"courseId": "cs101"}, headers=student_headers)
    assert missing.status_code == 400
    not_passed = await client.post("/api/certificate/generate", json=body, headers=student_headers)
    assert not_passed.status_code == 403

    await db[ASSESSMENT_RESULTS].insert_one({
        "userEmail": "learner@example.com", "courseId": "cs101", "score": 90, "passed": True,
    })
    response = await client.post("/api/certificate/generate", json=body, headers=student_headers)
    assert response.status_code == 200
    assert CERTIFICATE_ID.match(response.json()["certificateId"])
    assert base64.b64decode(response.json()["certificate"]).startswith(b"\x89PNG")

    again = await client.post("/api/certificate/generate", json=body, headers=student_headers)
    assert again.json()["certificateId"] == response.json()["certificateId"]


async def test_concurrent_issue_returns_the_stored_certificate(db, monkeypatch):
    stored, _ = await certificates_db.issue_certificate(db, "a@example.com", "cs101", "A", "CS")

    # the other request checked before the first insert landed
    real_lookup = certificates_db.get_user_certificate
    calls = []

    async def lookup_after_race(db_, user_email, course_id):
        calls.append(course_id)
        if len(calls) == 1:
            return None
        return await real_lookup(db_, user_email, course_id)

    monkeypatch.setattr(certificates_db, "get_user_certificate", lookup_after_race)

    certificate, created = await certificates_db.issue_certificate(db, "a@example.com", "cs101", "A", "CS")

    assert not created
    assert certificate["certificateId"] == stored["certificateId"]
    assert await db[CERTIFICATES].count_documents({"userEmail": "a@example.com", "courseId": "cs101"}) == 1
