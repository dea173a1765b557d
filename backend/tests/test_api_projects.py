# ruff: noqa

from uuid import uuid4

from app.services.work import WorkService


def _create_project(client, headers, name="Apollo"):
    resp = client.post(
        "/api/projects",
        json={"name": name, "description": "Launch the new site", "tags": ["web"], "budget_allocated": 500},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_requests_without_user_header_are_unauthorized(client):
    assert client.get("/api/projects").status_code == 401
    assert client.get("/api/projects", headers={"X-User-Id": "not-a-uuid"}).status_code == 401
    assert client.get("/api/projects", headers={"X-User-Id": str(uuid4())}).status_code == 401


def test_duplicate_username_conflicts(client, make_user):
    make_user("olivia")
    resp = client.post("/api/users", json={"username": "olivia", "email": "other@example.com"})
    assert resp.status_code == 409


def test_me_returns_acting_user(client, make_user):
    headers = make_user("olivia", role="manager")
    resp = client.get("/api/users/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["username"] == "olivia"
    assert resp.json()["role"] == "manager"


def test_create_project_returns_owner_as_lead(client, make_user):
    owner = make_user("olivia")
    body = _create_project(client, owner)

    assert body["owner_id"] == owner["X-User-Id"]
    assert body["progress"] == 0
    assert body["remaining_budget"] == 500
    assert body["team"] == [
        {"user_id": owner["X-User-Id"], "role": "lead", "joined_at": body["team"][0]["joined_at"]}
    ]


def test_create_project_validates_payload(client, make_user):
    owner = make_user("olivia")
    resp = client.post("/api/projects", json={"name": "", "description": "x"}, headers=owner)
    assert resp.status_code == 422
    resp = client.post("/api/projects", json={"name": "   ", "description": "x"}, headers=owner)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Project name is required"


def test_project_list_is_scoped_and_paginated(client, make_user):
    owner = make_user("olivia")
    other = make_user("oscar")
    _create_project(client, owner, "Apollo")
    _create_project(client, owner, "Gemini")
    _create_project(client, other, "Mercury")

    resp = client.get("/api/projects", params={"limit": 1}, headers=owner)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    assert len(body["items"]) == 1

    names = [p["name"] for p in client.get("/api/projects", headers=other).json()["items"]]
    assert names == ["Mercury"]


def test_outsider_gets_403_and_missing_project_404(client, make_user):
    owner = make_user("olivia")
    outsider = make_user("oscar")
    project = _create_project(client, owner)

    assert client.get(f"/api/projects/{project['id']}", headers=outsider).status_code == 403
    resp = client.get(f"/api/projects/{uuid4()}", headers=owner)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Project not found"


def test_team_management(client, make_user):
    owner = make_user("olivia")
    dev = make_user("dana")
    project = _create_project(client, owner)
    url = f"/api/projects/{project['id']}/members"

    resp = client.post(url, json={"user_id": dev["X-User-Id"]}, headers=owner)
    assert resp.status_code == 201
    roles = {m["user_id"]: m["role"] for m in resp.json()["team"]}
    assert roles[dev["X-User-Id"]] == "developer"

    dup = client.post(url, json={"user_id": dev["X-User-Id"], "role": "tester"}, headers=owner)
    assert dup.status_code == 409

    assert client.get(f"/api/projects/{project['id']}", headers=dev).status_code == 200

    resp = client.delete(f"{url}/{owner['X-User-Id']}", headers=owner)
    assert resp.status_code == 422

    resp = client.delete(f"{url}/{dev['X-User-Id']}", headers=owner)
    assert resp.status_code == 200
    assert client.get(f"/api/projects/{project['id']}", headers=dev).status_code == 403


def test_developer_cannot_add_members_or_edit(client, make_user):
    owner = make_user("olivia")
    dev = make_user("dana")
    newcomer = make_user("nina")
    project = _create_project(client, owner)
    client.post(f"/api/projects/{project['id']}/members", json={"user_id": dev["X-User-Id"]}, headers=owner)

    resp = client.post(
        f"/api/projects/{project['id']}/members",
        json={"user_id": newcomer["X-User-Id"]},
        headers=dev,
    )
    assert resp.status_code == 403
    resp = client.patch(f"/api/projects/{project['id']}", json={"name": "Mine"}, headers=dev)
    assert resp.status_code == 403


def test_progress_is_not_writable(client, make_user):
    owner = make_user("olivia")
    project = _create_project(client, owner)
    resp = client.patch(
        f"/api/projects/{project['id']}",
        json={"progress": 90, "status": "in-progress"},
        headers=owner,
    )
    assert resp.status_code == 200
    assert resp.json()["progress"] == 0
    assert resp.json()["status"] == "in-progress"


def test_only_owner_deletes_project(client, make_user):
    owner = make_user("olivia")
    lead = make_user("liam")
    project = _create_project(client, owner)
    client.post(
        f"/api/projects/{project['id']}/members",
        json={"user_id": lead["X-User-Id"], "role": "lead"},
        headers=owner,
    )
    client.post(
        "/api/tasks",
        json={"title": "T", "description": "d", "project_id": project["id"]},
        headers=lead,
    )

    assert client.delete(f"/api/projects/{project['id']}", headers=lead).status_code == 403
    assert client.get(f"/api/projects/{project['id']}", headers=owner).status_code == 200

    resp = client.delete(f"/api/projects/{project['id']}", headers=owner)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert client.get(f"/api/projects/{project['id']}", headers=owner).status_code == 404


def test_milestones_and_activity(client, make_user):
    owner = make_user("olivia")
    project = _create_project(client, owner)
    base = f"/api/projects/{project['id']}"

    resp = client.post(f"{base}/milestones", json={"name": "Beta"}, headers=owner)
    assert resp.status_code == 201
    milestone = resp.json()
    assert milestone["status"] == "pending"

    resp = client.post(f"{base}/milestones/{milestone['id']}/complete", headers=owner)
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"

    events = client.get(f"{base}/activity", headers=owner).json()["items"]
    assert [e["event_type"] for e in events][:2] == ["milestone.completed", "milestone.created"]
    assert events[-1]["event_type"] == "project.created"


def test_project_list_reads_only_the_requested_page(client, make_user, monkeypatch):
    owner = make_user("olivia")
    for name in ("Apollo", "Gemini", "Mercury", "Skylab"):
        _create_project(client, owner, name)

    built = []
    original = WorkService.project_read

    def _counting(self, project):
        built.append(project.id)
        return original(self, project)

    monkeypatch.setattr(WorkService, "project_read", _counting)

    body = client.get("/api/projects", params={"limit": 1}, headers=owner).json()

    assert body["total"] == 4
    assert [p["name"] for p in body["items"]] == ["Skylab"]
    assert len(built) == 1


def test_activity_is_paginated(client, make_user):
    owner = make_user("olivia")
    outsider = make_user("oscar")
    project = _create_project(client, owner)
    base = f"/api/projects/{project['id']}"
    for name in ("Alpha", "Beta"):
        client.post(f"{base}/milestones", json={"name": name}, headers=owner)

    body = client.get(f"{base}/activity", params={"limit": 1}, headers=owner).json()
    assert body["total"] == 3
    assert [e["message"] for e in body["items"]] == ["Milestone created: Beta."]
    assert client.get(f"{base}/activity", headers=outsider).status_code == 403


def test_end_date_offset_is_stored_as_utc(client, make_user):
    owner = make_user("olivia")
    resp = client.post(
        "/api/projects",
        json={"name": "Apollo", "description": "d", "end_date": "2030-01-01T00:00:00+05:00"},
        headers=owner,
    )
    assert resp.status_code == 201
    project = resp.json()
    assert project["end_date"] == "2029-12-31T19:00:00"

    resp = client.post(
        f"/api/projects/{project['id']}/milestones",
        json={"name": "Beta", "due_date": "2030-03-01T09:30:00+01:00"},
        headers=owner,
    )
    assert resp.json()["due_date"] == "2030-03-01T08:30:00"

    resp = client.patch(
        f"/api/projects/{project['id']}",
        json={"end_date": "2030-02-01T00:00:00Z"},
        headers=owner,
    )
    assert resp.json()["end_date"] == "2030-02-01T00:00:00"
