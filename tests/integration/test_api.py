"""Integration tests for API endpoints."""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from urbancare.db import crud
from urbancare.db.engine import get_db
from urbancare.main import app
from urbancare.services.auth import SESSION_COOKIE_NAME, create_session, hash_password

AFTER = "https://img.test/after.jpg"


@pytest_asyncio.fixture
async def api(session_factory):
    """One authenticated client per role, sharing an in-memory database."""
    pw = hash_password("testpass123")
    tokens, ids = {}, {}
    async with session_factory() as db:
        for name, role, dept, emp in [
            ("authority", "authority", "Public Works", None),
            ("worker", "worker", "Roads", "W-1"),
            ("other_worker", "worker", "Water", "W-2"),
            ("citizen", "citizen", None, None),
        ]:
            user = await crud.create_user(db, f"{name}@city.test", pw, role, name.title(), dept, emp)
            ids[name] = user.id
            tokens[name] = await create_session(user, db)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)

    clients = {
        name: AsyncClient(transport=transport, base_url="http://test",
                          cookies={SESSION_COOKIE_NAME: token})
        for name, token in tokens.items()
    }
    clients["anonymous"] = AsyncClient(transport=transport, base_url="http://test")
    clients["ids"] = ids
    yield clients

    for name, c in clients.items():
        if name != "ids":
            await c.aclose()
    app.dependency_overrides.clear()


async def _report(api, **kw):
    body = {"description": "Deep pothole in the left lane", "category": "Infrastructure", "location": "MG Road"}
    body.update(kw)
    r = await api["citizen"].post("/api/issues", json=body)
    assert r.status_code == 201, r.text
    return r.json()


async def test_health(api):
    r = await api["anonymous"].get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_register_login_me_logout(api):
    anon = api["anonymous"]
    r = await anon.post("/api/auth/register", json={"email": "New@City.test", "password": "longenough"})
    assert r.status_code == 201
    assert r.json()["role"] == "citizen"

    r = await anon.post("/api/auth/login", json={"email": "new@city.test", "password": "wrong-pass"})
    assert r.status_code == 401

    r = await anon.post("/api/auth/login", json={"email": "new@city.test", "password": "longenough"})
    assert r.status_code == 200
    token = r.cookies.get(SESSION_COOKIE_NAME)
    assert token

    r = await anon.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["email"] == "new@city.test"


async def test_register_rejects_short_password(api):
    r = await api["anonymous"].post("/api/auth/register", json={"email": "a@city.test", "password": "short"})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


async def test_report_requires_auth(api):
    r = await api["anonymous"].post("/api/issues", json={"description": "x", "category": "Trash", "location": "y"})
    assert r.status_code == 401


async def test_report_and_read_issue(api):
    issue = await _report(api, category="trash")
    assert issue["status"] == "reported"
    assert issue["category"] == "Trash"
    assert issue["priority"] == "low"

    r = await api["authority"].get(f"/api/issues/{issue['id']}")
    assert r.status_code == 200
    assert set(r.json()["allowed_transitions"]) == {"assigned", "closed"}

    r = await api["anonymous"].get(f"/api/issues/{issue['id']}")
    assert r.json()["allowed_transitions"] == []


async def test_unknown_issue_is_404(api):
    r = await api["anonymous"].get("/api/issues/01MISSING")
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


async def test_lifecycle_over_http(api):
    issue = await _report(api)
    url = f"/api/issues/{issue['id']}/transition"

    r = await api["authority"].post(url, json={"status": "in_progress"})
    assert r.status_code == 409
    assert r.json()["current"] == "reported"
    assert r.json()["requested"] == "in_progress"

    r = await api["authority"].post(url, json={"status": "assigned", "assigned_to": api["ids"]["worker"]})
    assert r.status_code == 200
    assert r.json()["status"] == "assigned"

    r = await api["worker"].post(url, json={"status": "in-progress"})
    assert r.status_code == 200
    assert r.json()["allowed_transitions"] == ["completed_by_worker"]

    r = await api["worker"].post(url, json={"status": "completed_by_worker"})
    assert r.status_code == 422

    r = await api["other_worker"].post(url, json={"status": "completed_by_worker", "after_image": AFTER})
    assert r.status_code == 403

    r = await api["worker"].post(url, json={"status": "completed_by_worker", "after_image": AFTER})
    assert r.status_code == 200
    assert r.json()["completed_at"] is not None

    r = await api["authority"].post(url, json={"status": "resolved", "note": "Looks good"})
    assert r.status_code == 200
    assert r.json()["status"] == "resolved"

    r = await api["citizen"].get(f"/api/issues/{issue['id']}/history")
    assert [h["to_status"] for h in r.json()] == [
        "reported", "assigned", "in_progress", "completed_by_worker", "resolved",
    ]

    r = await api["anonymous"].get("/api/success-stories")
    assert r.json() == []


async def test_invalid_status_is_422(api):
    issue = await _report(api)
    r = await api["authority"].post(f"/api/issues/{issue['id']}/transition", json={"status": "done"})
    assert r.status_code == 422


async def test_upvote_and_comments(api):
    issue = await _report(api)
    url = f"/api/issues/{issue['id']}"

    r = await api["worker"].post(f"{url}/upvote")
    assert r.json() == {"issue_id": issue["id"], "volunteers_count": 1, "upvoted": True}
    r = await api["worker"].post(f"{url}/upvote")
    assert r.json()["volunteers_count"] == 0
    assert r.json()["upvoted"] is False

    r = await api["anonymous"].post(f"{url}/upvote")
    assert r.status_code == 401

    r = await api["citizen"].post(f"{url}/comments", json={"content": "Still there"})
    assert r.status_code == 201
    assert r.json()["user_name"] == "Citizen"

    r = await api["anonymous"].get(f"{url}/comments")
    assert [c["content"] for c in r.json()] == ["Still there"]
    r = await api["anonymous"].get(url)
    assert r.json()["comments_count"] == 1


async def test_notes_and_urgency_are_authority_only(api):
    issue = await _report(api, category="Trash")
    url = f"/api/issues/{issue['id']}"

    r = await api["citizen"].post(f"{url}/notes", json={"text": "hi"})
    assert r.status_code == 403
    r = await api["authority"].post(f"{url}/notes", json={"text": "Send a truck"})
    assert r.status_code == 201
    r = await api["authority"].get(f"{url}/notes")
    assert [n["text"] for n in r.json()] == ["Send a truck"]

    r = await api["worker"].put(f"{url}/urgency", json={"urgency": "critical"})
    assert r.status_code == 403
    r = await api["authority"].put(f"{url}/urgency", json={"urgency": "critical"})
    assert r.status_code == 200
    assert r.json()["urgency"] == "critical"
    assert r.json()["priority"] == "critical"


async def test_list_issues_filters(api):
    await _report(api, category="Trash")
    await _report(api, category="Safety")

    r = await api["anonymous"].get("/api/issues", params={"sort": "priority"})
    data = r.json()
    assert data["total"] == 2
    assert data["items"][0]["category"] == "Safety"

    r = await api["anonymous"].get("/api/issues", params={"category": "Trash"})
    assert [i["category"] for i in r.json()["items"]] == ["Trash"]

    r = await api["anonymous"].get("/api/issues", params={"urgency": "urgent"})
    assert r.status_code == 422


async def test_workers_and_tasks(api):
    r = await api["citizen"].get("/api/workers")
    assert r.status_code == 403

    r = await api["authority"].post("/api/workers", json={
        "email": "new.worker@city.test", "password": "longenough", "full_name": "New Worker",
        "employee_id": "W-3", "department": "Drainage",
    })
    assert r.status_code == 201
    assert r.json()["role"] == "worker"

    r = await api["authority"].get("/api/workers", params={"department": "Drainage"})
    assert [w["full_name"] for w in r.json()] == ["New Worker"]

    issue = await _report(api, category="Water")
    await api["authority"].post(f"/api/issues/{issue['id']}/transition",
                                json={"status": "assigned", "assigned_to": api["ids"]["worker"]})

    r = await api["worker"].get("/api/workers/me/tasks")
    tasks = r.json()
    assert len(tasks) == 1
    assert tasks[0]["status"] == "pending"
    assert tasks[0]["priority"] == "high"
    assert tasks[0]["estimated_hours"] == 3

    r = await api["other_worker"].get(f"/api/workers/me/tasks/{issue['id']}")
    assert r.status_code == 403

    r = await api["authority"].get(f"/api/workers/{api['ids']['worker']}/tasks")
    assert len(r.json()) == 1

    r = await api["worker"].get("/api/dashboard/worker")
    assert r.json()["pending_tasks"] == 1
    r = await api["authority"].get("/api/dashboard/authority")
    assert r.json()["assigned_issues"] == 1


async def test_authority_rejection_note_is_not_in_public_history(api):
    issue = await _report(api)
    url = f"/api/issues/{issue['id']}/transition"
    await api["authority"].post(url, json={"status": "assigned", "assigned_to": api["ids"]["worker"]})
    await api["worker"].post(url, json={"status": "in_progress"})
    await api["worker"].post(url, json={"status": "completed_by_worker", "after_image": AFTER})
    r = await api["authority"].post(url, json={"status": "in_progress", "note": "Contractor billing dispute"})
    assert r.status_code == 200

    r = await api["citizen"].get(f"/api/issues/{issue['id']}/history")
    assert r.status_code == 200
    assert "Contractor billing dispute" not in r.text

    r = await api["authority"].get(f"/api/issues/{issue['id']}/notes")
    assert [n["text"] for n in r.json()] == ["Contractor billing dispute"]


async def test_store_failure_is_503_with_retry_after(api, monkeypatch):
    async def locked(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(crud, "get_issue", locked)
    r = await api["anonymous"].get("/api/issues/01ANY")
    assert r.status_code == 503
    assert r.headers["Retry-After"] == "1"
    assert r.json()["error"] == "transient_error"
