from mudhalvan.config import AttendanceThresholds
from mudhalvan.progress.attendance import (
    AttendanceWarnings, WarningType, is_fast_forward, is_inactive, is_tab_switch,
)

THRESHOLDS = AttendanceThresholds()
LESSON = {"courseId": "cs101", "moduleId": "0", "lessonId": "0"}


def test_inactivity_boundary():
    assert not is_inactive(14.9, THRESHOLDS)
    assert is_inactive(15, THRESHOLDS)
    assert not is_inactive(20, AttendanceThresholds(inactivity_seconds=60))


def test_fast_forward_needs_both_margins():
    # normal playback
    assert not is_fast_forward(10, 12, 2, THRESHOLDS)
    # ahead of wall clock but within tolerance
    assert not is_fast_forward(10, 15, 2, THRESHOLDS)
    # big jump
    assert is_fast_forward(10, 40, 2, THRESHOLDS)
    # jump larger than tolerance but under the minimum seek
    assert not is_fast_forward(0, 4.5, 0, AttendanceThresholds(seek_tolerance_seconds=1))


def test_tab_switch_detector():
    assert is_tab_switch("hidden")
    assert not is_tab_switch("visible")


def test_warning_withholds_credit_until_acknowledged():
    warnings = AttendanceWarnings()
    assert warnings.credit_allowed

    assert warnings.raise_warning(WarningType.INACTIVE) is not None
    assert not warnings.credit_allowed
    # same warning is not stacked while pending
    assert warnings.raise_warning(WarningType.INACTIVE) is None

    assert warnings.acknowledge(WarningType.INACTIVE) == 1
    assert warnings.credit_allowed

    # re-entrant after acknowledgment
    assert warnings.raise_warning(WarningType.INACTIVE) is not None
    assert len(warnings.events) == 2


def test_acknowledge_only_named_type():
    warnings = AttendanceWarnings()
    warnings.raise_warning(WarningType.TAB_SWITCH)
    warnings.raise_warning(WarningType.FAST_FORWARD)

    assert warnings.acknowledge(WarningType.TAB_SWITCH) == 1
    assert [e["type"] for e in warnings.pending] == ["fast_forward"]
    assert warnings.acknowledge() == 1


async def test_seek_forward_blocks_completion_until_acknowledged(client, student_headers):
    first = await client.post("/api/attendance", headers=student_headers,
                              json={**LESSON, "currentTime": 2, "totalDuration": 100})
    assert first.status_code == 200
    assert first.json()["pendingWarnings"] == []

    skipped = await client.post("/api/attendance", headers=student_headers,
                                json={**LESSON, "currentTime": 97, "totalDuration": 100})
    assert skipped.json()["pendingWarnings"] == ["fast_forward"]
    assert skipped.json()["completed"] is False

    ack = await client.post("/api/attendance/acknowledge", headers=student_headers, json=LESSON)
    assert ack.json() == {"success": True, "acknowledged": 1}

    resumed = await client.post("/api/attendance", headers=student_headers,
                                json={**LESSON, "currentTime": 98, "totalDuration": 100})
    assert resumed.json()["completed"] is True
    assert resumed.json()["creditAllowed"] is True


async def test_first_sample_far_into_lesson_is_a_seek(client, student_headers):
    response = await client.post("/api/attendance", headers=student_headers,
                                 json={**LESSON, "currentTime": 97, "totalDuration": 100})
    assert response.status_code == 200
    assert response.json()["pendingWarnings"] == ["fast_forward"]
    assert response.json()["completed"] is False
    assert response.json()["creditAllowed"] is False


async def test_first_sample_near_start_raises_nothing(client, student_headers):
    response = await client.post("/api/attendance", headers=student_headers,
                                 json={**LESSON, "currentTime": 4, "totalDuration": 100})
    assert response.json()["pendingWarnings"] == []


async def test_client_reported_event_is_recorded(client, student_headers):
    response = await client.post("/api/attendance", headers=student_headers, json={
        **LESSON, "currentTime": 5, "totalDuration": 100,
        "event": {"type": "tab_switch", "details": "User switched tab or minimized window"},
    })
    assert response.json()["pendingWarnings"] == ["tab_switch"]

    records = (await client.get("/api/attendance", params={"courseId": "cs101"}, headers=student_headers)).json()
    events = records["records"][0]["attentionEvents"]
    assert events[0]["type"] == "tab_switch"
    assert events[0]["acknowledged"] is False


async def test_attendance_validation(client, student_headers):
    missing = await client.post("/api/attendance", headers=student_headers, json={"courseId": "cs101"})
    assert missing.status_code == 400

    bad_event = await client.post("/api/attendance", headers=student_headers,
                                  json={**LESSON, "event": {"type": "sleeping"}})
    assert bad_event.status_code == 422

    not_a_position = await client.post("/api/attendance", headers=student_headers,
                                       json={"courseId": "cs101", "moduleId": "m1", "lessonId": "l1"})
    assert not_a_position.status_code == 422

    no_record = await client.post("/api/attendance/acknowledge", headers=student_headers,
                                  json={"courseId": "x", "moduleId": "0", "lessonId": "0"})
    assert no_record.status_code == 404


async def test_thresholds_are_published(client):
    response = await client.get("/api/attendance/thresholds")
    assert response.json()["inactivity_seconds"] == 15
    assert response.json()["min_seek_seconds"] == 5
