# ruff: noqa

from datetime import datetime

from app.services.statistics import range_start


def _setup(client, make_user):
    owner = make_user("olivia", role="manager")
    outsider = make_user("oscar", role="tester")
    project = client.post(
        "/api/projects",
        json={"name": "Apollo", "description": "Launch the new site", "tags": ["frontend"]},
        headers=owner,
    ).json()
    for title in ("Design header", "Write copy"):
        client.post(
            "/api/tasks",
            json={
                "title": title,
                "description": "d",
                "project_id": project["id"],
                "estimated_hours": 4,
            },
            headers=owner,
        )
    return owner, outsider, project


def test_range_start_windows():
    now = datetime(2026, 5, 20, 15, 30)
    assert range_start("day", now) == datetime(2026, 5, 19, 15, 30)
    assert range_start("week", now) == datetime(2026, 5, 13, 15, 30)
    assert range_start("month", now) == datetime(2026, 5, 1)
    assert range_start("year", now) == datetime(2026, 1, 1)


def test_statistics_for_project(client, make_user):
    owner, _outsider, project = _setup(client, make_user)

    resp = client.get(
        "/api/advanced/stats",
        params={"project_id": project["id"], "time_range": "year"},
        headers=owner,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["task_statistics"] == [
        {"status": "todo", "count": 2, "avg_estimated_hours": 4.0, "avg_actual_hours": None}
    ]
    assert body["project_statistics"][0]["count"] == 1
    workload = body["workload_statistics"]
    assert len(workload) == 1
    assert workload[0]["username"] == "olivia"
    assert workload[0]["task_count"] == 2
    assert workload[0]["completion_rate"] == 0
    assert workload[0]["efficiency"] is None
    assert body["filters"] == {"project_id": project["id"], "time_range": "year"}


def test_statistics_for_foreign_project_is_forbidden(client, make_user):
    _owner, outsider, project = _setup(client, make_user)
    resp = client.get("/api/advanced/stats", params={"project_id": project["id"]}, headers=outsider)
    assert resp.status_code == 403


def test_statistics_without_projects_are_empty(client, make_user):
    _owner, outsider, _project = _setup(client, make_user)
    body = client.get("/api/advanced/stats", headers=outsider).json()
    assert body["task_statistics"] == []
    assert body["project_statistics"] == []
    assert body["workload_statistics"] == []


def test_search_all(client, make_user):
    owner, _outsider, _project = _setup(client, make_user)

    resp = client.get("/api/advanced/search", params={"q": "design"}, headers=owner)
    assert resp.status_code == 200
    body = resp.json()
    assert body["type"] == "all"
    assert [t["title"] for t in body["results"]["tasks"]] == ["Design header"]
    assert body["results"]["projects"] == []
    assert body["results"]["users"] == []


def test_search_matches_tags_and_respects_type(client, make_user):
    owner, _outsider, project = _setup(client, make_user)

    body = client.get(
        "/api/advanced/search",
        params={"q": "FRONTEND", "type": "projects"},
        headers=owner,
    ).json()
    assert [p["id"] for p in body["results"]["projects"]] == [project["id"]]
    assert body["results"]["tasks"] is None
    assert body["results"]["users"] is None


def test_search_is_scoped_to_accessible_projects(client, make_user):
    _owner, outsider, _project = _setup(client, make_user)
    body = client.get("/api/advanced/search", params={"q": "design"}, headers=outsider).json()
    assert body["results"]["tasks"] == []


def test_search_users(client, make_user):
    owner, _outsider, _project = _setup(client, make_user)
    body = client.get("/api/advanced/search", params={"q": "osc", "type": "users"}, headers=owner).json()
    assert [u["username"] for u in body["results"]["users"]] == ["oscar"]


def test_search_requires_query(client, make_user):
    owner, _outsider, _project = _setup(client, make_user)
    assert client.get("/api/advanced/search", params={"q": ""}, headers=owner).status_code == 422
    assert client.get("/api/advanced/search", params={"q": "   "}, headers=owner).status_code == 422


def test_user_stats(client, make_user):
    owner, _outsider, _project = _setup(client, make_user)
    body = client.get("/api/users/stats", headers=owner).json()
    assert body["total_users"] == 2
    assert body["role_distribution"] == [
        {"role": "manager", "count": 1},
        {"role": "tester", "count": 1},
    ]


def test_user_listing_filters_by_role(client, make_user):
    owner, _outsider, _project = _setup(client, make_user)
    body = client.get("/api/users", params={"role": "tester"}, headers=owner).json()
    assert [u["username"] for u in body["items"]] == ["oscar"]
    assert body["total"] == 1
