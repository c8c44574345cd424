# tests/test_tasks_api.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fastapi.testclient import TestClient


def create(client: TestClient, **overrides) -> dict:
    body = {"title": "Write spec", "description": "", "priority": "high"}
    body.update(overrides)
    response = client.post("/tasks", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_task_lifecycle_scenario(client: TestClient) -> None:
    task = create(client)
    assert task["id"]
    assert task["status"] == "pending"
    assert task["completed_at"] is None
    task_id = task["id"]

    response = client.patch(f"/tasks/{task_id}", json={"status": "completed"})
    assert response.status_code == 200
    done = response.json()
    assert done["status"] == "completed"
    assert datetime.fromisoformat(done["completed_at"]) >= datetime.fromisoformat(
        done["created_at"]
    )

    response = client.patch(f"/tasks/{task_id}", json={"status": "in_progress"})
    assert response.status_code == 200
    assert response.json()["completed_at"] is None

    response = client.delete(f"/tasks/{task_id}")
    assert response.status_code == 204
    assert response.content == b""

    response = client.get(f"/tasks/{task_id}")
    assert response.status_code == 404
    assert response.json() == {"detail": "Task not found"}


def test_get_task(client: TestClient) -> None:
    task = create(client, description="some details", priority="low")
    response = client.get(f"/tasks/{task['id']}")
    assert response.status_code == 200
    assert response.json() == task


def test_create_rejects_empty_title(client: TestClient) -> None:
    for title in ("", "   "):
        response = client.post(
            "/tasks", json={"title": title, "description": "", "priority": "low"}
        )
        assert response.status_code == 400
        assert response.json()["field"] == "title"
    assert client.get("/tasks").json() == []


def test_create_rejects_unknown_priority(client: TestClient) -> None:
    response = client.post(
        "/tasks", json={"title": "t", "description": "", "priority": "urgent"}
    )
    assert response.status_code == 400
    assert response.json()["field"] == "priority"


def test_create_rejects_client_supplied_lifecycle_fields(client: TestClient) -> None:
    for extra in ({"completed_at": "2026-01-01T00:00:00Z"}, {"status": "completed"}, {"id": "x"}):
        body = {"title": "t", "description": "", "priority": "low", **extra}
        response = client.post("/tasks", json=body)
        assert response.status_code == 400
        assert response.json()["field"] == next(iter(extra))


def test_create_rejects_malformed_json(client: TestClient) -> None:
    response = client.post(
        "/tasks", content="{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_patch_partial_fields(client: TestClient) -> None:
    task = create(client, description="keep")
    response = client.patch(f"/tasks/{task['id']}", json={"title": "renamed"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "renamed"
    assert updated["description"] == "keep"
    assert updated["priority"] == "high"
    assert updated["created_at"] == task["created_at"]


def test_patch_validation_errors(client: TestClient) -> None:
    task = create(client)
    cases = [
        ({"status": "archived"}, "status"),
        ({"priority": "urgent"}, "priority"),
        ({"title": None}, "title"),
        ({"description": None}, "description"),
        ({"completed_at": "2026-01-01T00:00:00Z"}, "completed_at"),
    ]
    for body, field in cases:
        response = client.patch(f"/tasks/{task['id']}", json=body)
        assert response.status_code == 400, body
        assert response.json()["field"] == field
    assert client.get(f"/tasks/{task['id']}").json() == task


def test_patch_missing_task_is_404(client: TestClient) -> None:
    response = client.patch("/tasks/missing", json={"status": "completed"})
    assert response.status_code == 404


def test_put_behaves_like_patch(client: TestClient) -> None:
    task = create(client)
    response = client.put(f"/tasks/{task['id']}", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["completed_at"] is not None


def test_delete_missing_task_is_404(client: TestClient) -> None:
    task = create(client)
    assert client.delete(f"/tasks/{task['id']}").status_code == 204
    assert client.delete(f"/tasks/{task['id']}").status_code == 404


def test_list_filters_and_order(client: TestClient) -> None:
    a = create(client, title="a", priority="low")
    b = create(client, title="b", priority="high")
    c = create(client, title="c", priority="high")
    client.patch(f"/tasks/{a['id']}", json={"status": "completed"})
    client.patch(f"/tasks/{c['id']}", json={"status": "completed"})

    response = client.get("/tasks")
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [a["id"], b["id"], c["id"]]

    completed = client.get("/tasks", params={"status": "completed"}).json()
    assert [t["id"] for t in completed] == [a["id"], c["id"]]
    assert all(t["completed_at"] is not None for t in completed)

    high_pending = client.get(
        "/tasks", params={"status": "pending", "priority": "high"}
    ).json()
    assert [t["id"] for t in high_pending] == [b["id"]]


def test_list_rejects_unknown_filter(client: TestClient) -> None:
    response = client.get("/tasks", params={"status": "archived"})
    assert response.status_code == 400
    assert response.json()["field"] == "status"


def test_cors_allows_any_origin(client: TestClient) -> None:
    response = client.get("/tasks", headers={"Origin": "http://example.com"})
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_store_failure_is_500(client: TestClient, tmp_path: Path) -> None:
    client.app.state.task_store.db_path = tmp_path / "gone" / "tasks.db"
    response = client.get("/tasks/anything")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_list_treats_blank_filters_as_absent(client: TestClient) -> None:
    a = create(client, title="a", priority="low")
    b = create(client, title="b", priority="high")

    response = client.get("/tasks?status=&priority=")
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [a["id"], b["id"]]

    response = client.get("/tasks?status=&priority=high")
    assert [t["id"] for t in response.json()] == [b["id"]]


def test_malformed_json_has_no_field(client: TestClient) -> None:
    response = client.post(
        "/tasks", content='{"title": ', headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["field"] is None
