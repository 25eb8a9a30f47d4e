"""HTTP-level tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from conftest import auth_headers
from groupwork.main import create_app

pytestmark = pytest.mark.db


@pytest.fixture
def app(session_factory):
    return create_app(session_factory)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def drain(client):
    client.portal.call(client.app.state.services.job_queue.drain)


def make_group(client, owner="u1", joiners=("u2",)):
    response = client.post("/groups", json={"name": "Chemistry", "subject": "Science"}, headers=auth_headers(owner))
    assert response.status_code == 201
    group = response.json()["group"]
    for uid in joiners:
        joined = client.post("/groups/join", json={"access_code": group["access_code"]}, headers=auth_headers(uid))
        assert joined.status_code == 200
    return group["id"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["db_ok"] is True
    assert body["pending_jobs"] == 0


def test_missing_token_is_unauthorized(client):
    response = client.get("/tasks/my-tasks")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "unauthorized", "message": "Not authenticated"},
    }


def test_bad_token_is_unauthorized(client):
    response = client.get("/tasks/my-tasks", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "unauthorized"


def test_task_lifecycle_over_http(client):
    group_id = make_group(client)

    created = client.post("/tasks", json={"title": "Lab notes", "group_id": group_id}, headers=auth_headers("u1"))
    assert created.status_code == 201
    task = created.json()["task"]
    assert created.json()["success"] is True
    assert task["status"] == "To Do"
    assert task["progress"] == 0

    assigned = client.put(f"/tasks/{task['id']}", json={"assigned_to": "u2"}, headers=auth_headers("u1"))
    assert assigned.status_code == 200
    assert assigned.json()["task"]["assigned_to"] == "u2"
    drain(client)

    done = client.put(
        f"/tasks/{task['id']}",
        json={"progress": 100, "completed_at": "2001-01-01T00:00:00Z"},
        headers=auth_headers("u2"),
    )
    assert done.status_code == 200
    body = done.json()["task"]
    assert body["status"] == "Done"
    assert body["progress"] == 100
    assert not body["completed_at"].startswith("2001")

    u1_inbox = client.get("/notifications/my", headers=auth_headers("u1")).json()
    task_notes = [n for n in u1_inbox["notifications"] if n["task_id"] == task["id"]]
    assert [n["type"] for n in task_notes] == ["task_progress"]

    u2_inbox = client.get("/notifications/my", headers=auth_headers("u2")).json()
    assert [n["type"] for n in u2_inbox["notifications"]].count("task_assigned") == 1

    mine = client.get("/tasks/my-tasks", headers=auth_headers("u2")).json()
    assert [t["id"] for t in mine["tasks"]] == [task["id"]]

    listed = client.get(f"/tasks/group/{group_id}?status=Done", headers=auth_headers("u1")).json()
    assert listed["count"] == 1


def test_invalid_progress_returns_validation_error(client):
    group_id = make_group(client)
    task = client.post(
        "/tasks", json={"title": "Essay", "group_id": group_id, "assigned_to": "u2"}, headers=auth_headers("u1")
    ).json()["task"]

    response = client.put(f"/tasks/{task['id']}", json={"progress": 150}, headers=auth_headers("u2"))

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"]["code"] == "validation_error"


def test_request_schema_errors_use_envelope(client):
    group_id = make_group(client)

    response = client.post("/tasks", json={"group_id": group_id}, headers=auth_headers("u1"))

    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["error"]["code"] == "validation_error"


def test_non_member_gets_forbidden(client):
    group_id = make_group(client, joiners=())

    response = client.get(f"/tasks/group/{group_id}", headers=auth_headers("stranger"))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "forbidden"


def test_unknown_task_is_not_found(client):
    response = client.get("/tasks/00000000-0000-0000-0000-000000000000", headers=auth_headers("u1"))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


def test_notification_read_and_clear(client):
    group_id = make_group(client, joiners=("u2", "u3"))
    client.post("/tasks", json={"title": "Slides", "group_id": group_id}, headers=auth_headers("u1"))

    inbox = client.get("/notifications/my", headers=auth_headers("u2")).json()
    [note] = [n for n in inbox["notifications"] if n["type"] == "task_created"]

    forbidden = client.patch(f"/notifications/{note['id']}/read", headers=auth_headers("u3"))
    assert forbidden.status_code == 403

    marked = client.patch(f"/notifications/{note['id']}/read", headers=auth_headers("u2"))
    assert marked.status_code == 200

    inbox = client.get("/notifications/my", headers=auth_headers("u2")).json()
    assert next(n for n in inbox["notifications"] if n["id"] == note["id"])["read"] is True

    cleared = client.delete("/notifications/clear", headers=auth_headers("u2"))
    assert cleared.json()["deleted_count"] == inbox["count"]
    assert client.get("/notifications/my", headers=auth_headers("u2")).json()["count"] == 0


def test_activity_log_list_and_clear(client):
    group_id = make_group(client)

    logged = client.post(
        "/activities/log",
        json={"group_id": group_id, "action": "file_uploaded", "details": "notes.pdf", "metadata": {"size": 10}},
        headers=auth_headers("u2"),
    )
    assert logged.status_code == 201

    listed = client.get(f"/activities/group/{group_id}", headers=auth_headers("u1")).json()
    actions = {a["action"] for a in listed["activities"]}
    assert {"group_created", "member_joined", "file_uploaded"} <= actions

    bad = client.post(
        "/activities/log", json={"group_id": group_id, "action": "teleported"}, headers=auth_headers("u1")
    )
    assert bad.status_code == 422

    cleared = client.delete(f"/activities/group/{group_id}/clear", headers=auth_headers("u1")).json()
    assert cleared["deleted"] == listed["count"]
    assert client.get(f"/activities/group/{group_id}", headers=auth_headers("u1")).json()["count"] == 0


def test_dashboard_overview(client):
    group_id = make_group(client)
    client.post(
        "/tasks", json={"title": "Outline", "group_id": group_id, "assigned_to": "u2"}, headers=auth_headers("u1")
    )
    drain(client)

    response = client.get("/dashboard/overview", headers=auth_headers("u2"))

    assert response.status_code == 200
    overview = response.json()["overview"]
    assert overview["stats"]["total_groups"] == 1
    assert overview["stats"]["my_tasks"] == 1
    assert any(n["type"] == "task_assigned" for n in overview["notifications"])

    stats = client.get("/dashboard/stats", headers=auth_headers("u2")).json()["stats"]
    assert stats["pending_tasks"] == 1


def test_profile_round_trip(client):
    fetched = client.get("/users/profile", headers=auth_headers("u9"))
    assert fetched.status_code == 200
    assert fetched.json()["user"]["email"] == "u9@example.com"

    updated = client.put("/users/profile", json={"full_name": "Uma Nine", "school": "State"}, headers=auth_headers("u9"))
    assert updated.json()["user"]["full_name"] == "Uma Nine"

    empty = client.put("/users/profile", json={}, headers=auth_headers("u9"))
    assert empty.status_code == 400


def test_non_string_assignee_metadata_does_not_break_activity_reads(client):
    group_id = make_group(client)

    logged = client.post(
        "/activities/log",
        json={"group_id": group_id, "action": "file_uploaded", "metadata": {"assigneeId": ["x"], "previousAssigneeId": {"a": 1}}},
        headers=auth_headers("u1"),
    )
    assert logged.status_code == 201
    assert logged.json()["activity"]["assignee_name"] is None
    assert logged.json()["activity"]["previous_assignee_name"] is None

    listed = client.get(f"/activities/group/{group_id}", headers=auth_headers("u1"))
    assert listed.status_code == 200
    assert "file_uploaded" in {a["action"] for a in listed.json()["activities"]}

    overview = client.get("/dashboard/overview", headers=auth_headers("u1")).json()["overview"]
    assert any(a["action"] == "file_uploaded" for a in overview["activities"])


def test_boolean_progress_is_rejected(client):
    group_id = make_group(client)
    task = client.post(
        "/tasks", json={"title": "Essay", "group_id": group_id, "assigned_to": "u2"}, headers=auth_headers("u1")
    ).json()["task"]

    response = client.put(f"/tasks/{task['id']}", json={"progress": True}, headers=auth_headers("u2"))

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"
    fetched = client.get(f"/tasks/{task['id']}", headers=auth_headers("u2")).json()["task"]
    assert fetched["progress"] == 0
