from __future__ import annotations

import pytest

from presence_system.container import Container
from presence_system.main import create_app
from presence_system.scheduler.service import EvictionScheduler
from presence_system.transitions.service import TransitionService


@pytest.fixture
def container(students, audit, feed, policy, broadcaster, student_service, audit_service, activity_service):
    scheduler = EvictionScheduler(feed, policy=policy, timezone="UTC", broadcaster=broadcaster, manual_timeout=2.0)
    yield Container(
        conn=None,
        students_repo=students,
        audit_repo=audit,
        feed_repo=feed,
        policy=policy,
        broadcaster=broadcaster,
        student_service=student_service,
        audit_service=audit_service,
        activity_service=activity_service,
        transition_service=TransitionService(students, audit, feed, policy=policy, broadcaster=broadcaster),
        scheduler=scheduler,
    )
    scheduler.shutdown()


@pytest.fixture
def client(container):
    app = create_app(container, settings_module="presence_system.config.testing")
    return app.test_client()


def test_health(client):
    res = client.get("/api/health")

    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "OK"


def test_toggle_round_trip(client):
    res = client.patch("/api/students/cs001/toggle")
    body = res.get_json()

    assert res.status_code == 200
    assert body["success"] is True
    assert body["message"] == "Student checked in successfully"
    assert body["data"]["student"]["status"] == "in"
    assert body["data"]["previousStatus"] == "out"
    assert body["data"]["logEntry"]["action"] == "in"

    res = client.post("/api/scan", json={"barcode": "CS001"})
    assert res.get_json()["data"]["student"]["status"] == "out"


def test_toggle_unknown_student_is_404(client):
    res = client.patch("/api/students/NOPE/toggle")

    assert res.status_code == 404
    assert res.get_json() == {"success": False, "message": "Student not found"}


def test_scan_requires_barcode(client):
    assert client.post("/api/scan", json={}).status_code == 400


def test_register_and_fetch_student(client):
    res = client.post("/api/students", json={"student_id": "it001", "name": "Meera Iyer", "department": "IT"})
    assert res.status_code == 201

    res = client.get("/api/students/IT001")
    assert res.get_json()["data"]["student"]["status"] == "out"

    dup = client.post("/api/students", json={"student_id": "IT001", "name": "Meera Iyer", "department": "IT"})
    assert dup.status_code == 409


def test_list_students(client):
    res = client.get("/api/students")
    body = res.get_json()

    assert res.status_code == 200
    assert body["data"]["count"] == 2
    assert sorted(s["student_id"] for s in body["data"]["students"]) == ["CS001", "EE001"]


def test_non_object_json_bodies_are_rejected_as_bad_requests(client):
    assert client.post("/api/scan", json=["CS001"]).status_code == 400
    assert client.post("/api/students", json=[1]).status_code == 400
    assert client.post("/api/activities", json="CS001").status_code == 400


def test_counts_and_status_listing(client):
    client.patch("/api/students/EE001/toggle")

    counts = client.get("/api/students/counts").get_json()["data"]
    assert counts == {"in": 1, "out": 1, "total": 2}

    listing = client.get("/api/students/status/in").get_json()["data"]
    assert listing["count"] == 1
    assert listing["students"][0]["student_id"] == "EE001"


def test_recent_activities_and_limit_validation(client):
    client.patch("/api/students/CS001/toggle")
    client.patch("/api/students/EE001/toggle")

    res = client.get("/api/activities/recent?limit=1")
    body = res.get_json()
    assert body["count"] == 1
    assert body["data"][0]["student_id"] == "EE001"

    assert client.get("/api/activities/recent?limit=500").status_code == 400


def test_add_activity_endpoint(client):
    res = client.post(
        "/api/activities",
        json={"student_id": "EE001", "student": {"name": "Priya Nair", "department": "EE"}, "action": "out"},
    )
    assert res.status_code == 201
    assert res.get_json()["data"]["action"] == "out"

    conflict = client.post(
        "/api/activities",
        json={"student_id": "EE001", "student": {"name": "Priya Nair", "department": "EE"}, "action": "in"},
    )
    assert conflict.status_code == 409


def test_clear_endpoints_report_deleted_count(client):
    client.patch("/api/students/CS001/toggle")

    res = client.delete("/api/activities/clear-old", json={"hours": 1})
    assert res.get_json()["deletedCount"] == 0

    res = client.delete("/api/activities/clear-all")
    assert res.get_json()["deletedCount"] == 1

    assert client.delete("/api/activities/clear-old", json={"hours": 500}).status_code == 400


def test_manual_cleanup_and_scheduler_status(client):
    client.patch("/api/students/CS001/toggle")

    res = client.post("/api/activities/cleanup/daily")
    assert res.status_code == 200
    assert res.get_json()["deletedCount"] == 1

    res = client.post("/api/activities/cleanup/weekly")
    assert res.get_json()["deletedCount"] == 0

    status = client.get("/api/activities/scheduler/status").get_json()["data"]
    assert [job["name"] for job in status] == ["daily-activity-cleanup", "weekly-activity-cleanup"]


def test_activity_stats(client):
    client.patch("/api/students/CS001/toggle")

    stats = client.get("/api/activities/stats").get_json()["data"]

    assert stats["today"]["checkIns"] == 1
    assert stats["overall"]["total"] == 1


def test_logs_endpoints(client):
    client.patch("/api/students/CS001/toggle")
    client.patch("/api/students/CS001/toggle")

    logs = client.get("/api/logs?limit=10").get_json()["data"]
    assert logs["count"] == 2
    assert logs["pagination"] == {"limit": 10, "offset": 0}

    student_logs = client.get("/api/logs/student/cs001").get_json()["data"]
    assert student_logs["studentId"] == "CS001"
    assert [e["action"] for e in student_logs["logs"]] == ["out", "in"]

    assert client.get("/api/logs/stats/not-a-date").status_code == 400
    assert client.get("/api/logs/stats/today").get_json()["data"]["stats"]["in"] == 1


def test_sync_version_and_wait(client):
    before = client.get("/api/sync/version").get_json()["data"]["version"]
    client.patch("/api/students/CS001/toggle")

    res = client.get(f"/api/sync/wait?since={before}&timeout=1").get_json()
    assert res["changed"] is True
    assert res["data"]["kind"] == "presence"

    res = client.get(f"/api/sync/wait?since={before + 1}&timeout=0").get_json()
    assert res["changed"] is False


def test_badge_endpoint_serves_png(client):
    res = client.get("/api/students/cs001/badge.png")

    assert res.status_code == 200
    assert res.mimetype == "image/png"
    assert client.get("/api/students/NOPE/badge.png").status_code == 404
