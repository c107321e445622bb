from datetime import datetime, timedelta

from mudhalvan.analytics.database import bucket, months_ago
from mudhalvan.database import ASSESSMENT_RESULTS, ATTENDANCE, QUESTIONS, USERS


def attendance(email, module_id, lesson_id, completed):
    return {
        "userEmail": email, "courseId": "cs101", "moduleId": module_id, "lessonId": lesson_id,
        "completed": completed, "attentionEvents": [],
    }


async def enroll_and_finish_first_lesson(client, headers):
    await client.post("/api/enrollments", json={"courseId": "cs101"}, headers=headers)
    await client.post("/api/attendance/heartbeat", headers=headers, json={
        "courseId": "cs101", "moduleIndex": 0, "lessonIndex": 0, "currentTime": 580, "totalDuration": 600,
    })


def test_distribution_buckets():
    assert bucket(0) == "0-20"
    assert bucket(20) == "0-20"
    assert bucket(20.5) == "21-40"
    assert bucket(80) == "61-80"
    assert bucket(100) == "81-100"


def test_months_ago_crosses_year():
    assert months_ago(datetime(2026, 2, 15), 6) == datetime(2025, 8, 1)
    assert months_ago(datetime(2026, 12, 31), 0) == datetime(2026, 12, 1)


async def test_reporting_routes_need_staff(client, course, student_headers, instructor_headers):
    assert (await client.get("/api/analytics/system")).status_code == 401
    assert (await client.get("/api/analytics/system", headers=student_headers)).status_code == 403
    assert (await client.get("/api/analytics/system", headers=instructor_headers)).status_code == 403

    for path in ("/api/analytics", "/api/attendance/summary", "/api/attendance/report"):
        response = await client.get(path, params={"courseId": "cs101"}, headers=student_headers)
        assert response.status_code == 403


async def test_attendance_summary(client, db, course, instructor_headers):
    await db[ATTENDANCE].insert_many([
        attendance("a@example.com", "0", "0", True),
        attendance("a@example.com", "0", "1", True),
        attendance("b@example.com", "0", "0", True),
        attendance("b@example.com", "0", "1", False),
    ])

    response = await client.get("/api/attendance/summary", params={"courseId": "cs101"}, headers=instructor_headers)

    assert response.status_code == 200
    summary = response.json()
    assert summary["totalLessons"] == 2
    assert summary["totalEnrolledUsers"] == 2
    assert summary["totalCompletedLessons"] == 3
    assert summary["overallCompletionRate"] == 75
    assert summary["usersCompletedAllLessons"] == 1
    assert summary["courseCompletionRate"] == 50
    assert summary["mostCompletedLessons"][0]["key"] == "0-0"
    assert summary["mostCompletedLessons"][0]["lessonName"] == "Variables"
    assert summary["leastCompletedLessons"][0]["key"] == "0-1"
    assert summary["leastCompletedLessons"][0]["inProgressCount"] == 1


async def test_attendance_summary_validation(client, instructor_headers):
    missing = await client.get("/api/attendance/summary", headers=instructor_headers)
    assert missing.status_code == 400
    unknown = await client.get("/api/attendance/summary", params={"courseId": "zz"}, headers=instructor_headers)
    assert unknown.status_code == 404


async def test_attendance_report_groups_by_course_and_user(client, db, course, student_headers, instructor_headers):
    await db[USERS].insert_one({"email": "learner@example.com", "name": "Learner Name"})
    await enroll_and_finish_first_lesson(client, student_headers)

    response = await client.get("/api/attendance/report", params={"courseId": "cs101"}, headers=instructor_headers)

    assert response.status_code == 200
    entry = response.json()["attendanceReport"]["cs101"]["learner@example.com"]
    assert entry["user"] == {"name": "Learner Name", "email": "learner@example.com"}
    lesson = entry["modules"]["Basics"]["lessons"]["Variables"]
    assert lesson["status"] == "completed"
    assert lesson["lastUpdated"]

    other_course = await client.get("/api/attendance/report", params={"courseId": "zz"}, headers=instructor_headers)
    assert other_course.json() == {"attendanceReport": {}}


async def test_course_analytics(client, db, course, student_headers, instructor_headers):
    await enroll_and_finish_first_lesson(client, student_headers)
    await db[QUESTIONS].insert_one({
        "courseId": "cs101", "questions": [{"id": "q1", "text": "2+2?", "correctAnswer": "4"}],
    })
    await db[ASSESSMENT_RESULTS].insert_many([
        {"userEmail": "learner@example.com", "courseId": "cs101", "score": 100, "passed": True,
         "answers": [{"questionId": "q1", "answer": "4"}]},
        {"userEmail": "other@example.com", "courseId": "cs101", "score": 0, "passed": False,
         "answers": [{"questionId": "q1", "answer": "5"}]},
    ])

    response = await client.get("/api/analytics", params={"courseId": "cs101"}, headers=instructor_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["enrollmentCount"] == 1
    assert body["totalLessons"] == 2
    assert body["modulesData"][0]["lessons"][1] == {"title": "Loops", "index": 1}

    first, second = body["attendanceHeatmap"]
    assert first["startedCount"] == first["completionCount"] == 1
    assert first["dropOffRate"] == 0
    assert first["completionRate"] == 100
    assert first["averageViewTime"] == 580
    assert second["startedCount"] == 0

    quiz = body["quizAnalytics"]
    assert quiz["totalAssessments"] == 2
    assert quiz["passRate"] == 50
    assert quiz["averageScore"] == 50
    assert (quiz["highestScore"], quiz["lowestScore"]) == (100, 0)
    assert quiz["scoreDistribution"]["0-20"] == quiz["scoreDistribution"]["81-100"] == 1
    assert quiz["questionAnalysis"]["q1"] == {"totalAttempts": 2, "correctAttempts": 1, "successRate": 50}

    overview = body["progressOverview"]
    assert overview["totalEnrollments"] == 1
    assert overview["inProgressCount"] == 1
    assert overview["completedCount"] == 0
    assert overview["averageCompletion"] == 50
    assert overview["progressDistribution"]["41-60"] == 1


async def test_instructors_only_see_their_own_courses(client, course, auth_headers, super_admin_headers):
    other_instructor = auth_headers(email="grace@example.com", user_id="user-9", name="Grace Hopper",
                                    role="instructor")

    denied = await client.get("/api/analytics", params={"courseId": "cs101"}, headers=other_instructor)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Unauthorized - You can only view analytics for your own courses"

    admin = await client.get("/api/analytics", params={"courseId": "cs101"}, headers=super_admin_headers)
    assert admin.status_code == 200


async def test_system_analytics(client, db, course, student_headers, auth_headers):
    now = datetime.utcnow()
    await db[USERS].insert_many([
        {"email": "learner@example.com", "name": "Learner", "lastLogin": now},
        {"email": "old@example.com", "name": "Old", "lastLogin": now - timedelta(days=60)},
        {"email": "never@example.com", "name": "Never"},
    ])
    await enroll_and_finish_first_lesson(client, student_headers)
    await db[ASSESSMENT_RESULTS].insert_many([
        {"userEmail": "learner@example.com", "courseId": "cs101", "score": 90, "passed": True},
        {"userEmail": "old@example.com", "courseId": "cs101", "score": 10, "passed": False},
    ])

    response = await client.get("/api/analytics/system", headers=auth_headers(role="admin"))

    assert response.status_code == 200
    body = response.json()
    assert body["totalUsers"] == 3
    assert body["activeUsers"] == 1
    assert body["engagedUsers"] == 1
    assert body["totalCourses"] == 1
    assert body["totalEnrollments"] == 1
    assert (body["totalAssessments"], body["passedAssessments"]) == (2, 1)
    assert body["assessmentPassRate"] == 50
    assert body["overallCompletionRate"] == 0
    assert [m["count"] for m in body["enrollmentsByMonth"]] == [1]
    assert sum(m["users"] for m in body["userEngagementOverTime"]) == 2
    assert body["popularCourses"][0] == {
        "id": "cs101", "title": course["title"], "instructor": "Ada Lovelace", "enrollmentCount": 1,
    }
    assert body["latestActivity"][0]["userEmail"] == "learner@example.com"
    assert body["latestActivity"][0]["userName"] == "Learner"
    assert body["latestActivity"][0]["courseId"] == "cs101"
