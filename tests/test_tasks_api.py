# tests/test_tasks_api.py

from __future__ import annotations

from fastapi.testclient import TestClient

from .helpers import register


def _create(client: TestClient, headers: dict[str, str], **fields) -> dict:
    resp = client.post("/api/tasks", json={"title": "Buy milk", **fields}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_task_defaults(client: TestClient, headers: dict[str, str]) -> None:
    t = _create(client, headers, labels=[" home ", "", "home", "errand"])
    assert t["done"] is False
    assert t["priority"] == "medium"
    assert t["labels"] == ["home", "errand"]
    assert t["description"] is None


def test_list_is_newest_first(client: TestClient, headers: dict[str, str]) -> None:
    first = _create(client, headers, title="first")
    second = _create(client, headers, title="second")
    ids = [t["id"] for t in client.get("/api/tasks", headers=headers).json()]
    assert ids == [second["id"], first["id"]]


def test_partial_update_and_toggle_twice(client: TestClient, headers: dict[str, str]) -> None:
    t = _create(client, headers, priority="high", due_date="2026-10-20")

    on = client.put(f"/api/tasks/{t['id']}", json={"done": True}, headers=headers).json()
    assert on["done"] is True
    assert on["priority"] == "high"
    assert on["due_date"] == "2026-10-20"

    off = client.put(f"/api/tasks/{t['id']}", json={"done": False}, headers=headers).json()
    assert off == t


def test_validation_failures(client: TestClient, headers: dict[str, str]) -> None:
    resp = client.post("/api/tasks", json={"title": "  "}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "title is required"}

    resp = client.post("/api/tasks", json={"title": "x", "priority": "urgent"}, headers=headers)
    assert resp.status_code == 400

    t = _create(client, headers)
    resp = client.put(f"/api/tasks/{t['id']}", json={"title": ""}, headers=headers)
    assert resp.status_code == 400
    assert client.get(f"/api/tasks/{t['id']}", headers=headers).json()["title"] == "Buy milk"


def test_delete_task(client: TestClient, headers: dict[str, str]) -> None:
    t = _create(client, headers)
    assert client.delete(f"/api/tasks/{t['id']}", headers=headers).json() == {"ok": True}
    assert client.get("/api/tasks", headers=headers).json() == []
    assert client.get(f"/api/tasks/{t['id']}", headers=headers).status_code == 404


def test_tasks_are_private(client: TestClient, headers: dict[str, str]) -> None:
    t = _create(client, headers)
    other = register(client, "b@x.com")

    assert client.get("/api/tasks", headers=other).json() == []
    assert client.put(f"/api/tasks/{t['id']}", json={"done": True}, headers=other).status_code == 404
    assert client.delete(f"/api/tasks/{t['id']}", headers=other).status_code == 404
