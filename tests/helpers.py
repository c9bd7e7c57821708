# tests/helpers.py

from __future__ import annotations

from fastapi.testclient import TestClient


def register(client: TestClient, email: str = "a@x.com", password: str = "pw1") -> dict[str, str]:
    """Register through the API and return bearer headers for the new user."""
    resp = client.post("/api/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}
