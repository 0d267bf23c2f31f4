from uuid import uuid4


# ========== HEALTH & AUTH ==========
def test_healthz(client):
    response = client.get("/health/z")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_signup_defaults_time_zone(client):
    response = client.post(
        "/auth/signup",
        json={"name": "Ana", "email": "ana@example.com", "password": "pass123"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["time_zone_id"] == "Europe/Berlin"
    assert data["tier"] == "free"
    assert "password_hash" not in data


def test_signup_rejects_unknown_zone(client):
    response = client.post(
        "/auth/signup",
        json={"name": "Ana", "email": "ana@example.com", "password": "pass123", "time_zone_id": "Nowhere/Land"}
    )
    assert response.status_code == 400


def test_signup_duplicate_email(client):
    payload = {"name": "Ana", "email": "ana@example.com", "password": "pass123"}
    client.post("/auth/signup", json=payload)
    response = client.post("/auth/signup", json=payload)
    assert response.status_code == 409


def test_login_wrong_password(client, auth_token):
    response = client.post("/auth/login", json={"email": "test@example.com", "password": "wrong"})
    assert response.status_code == 401


def test_refresh_returns_new_access_token(client):
    client.post("/auth/signup", json={"name": "Ana", "email": "ana@example.com", "password": "pass123"})
    tokens = client.post("/auth/login", json={"email": "ana@example.com", "password": "pass123"}).json()

    response = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["refresh_token"] == tokens["refresh_token"]

    # an access token is not a refresh token
    response = client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_missing_and_invalid_token(client):
    assert client.get("/tasks").status_code == 401
    assert client.get("/tasks", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_subscription_settings(client, auth_headers):
    response = client.patch(
        "/subscription/settings",
        headers=auth_headers,
        json={"time_zone_id": "America/New_York", "always_show_completed_tasks": True}
    )
    assert response.status_code == 200
    assert response.json()["time_zone_id"] == "America/New_York"

    response = client.patch("/subscription/settings", headers=auth_headers, json={"time_zone_id": "Bad/Zone"})
    assert response.status_code == 400


# ========== TASKS ==========
def test_create_and_get_task(client, auth_headers):
    response = client.post(
        "/tasks",
        headers=auth_headers,
        json={"title": "  Write report ", "priority": "high"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Write report"
    assert data["priority"] == "high"
    assert data["status"] == "todo"
    assert data["project_id"] is None
    assert data["subtasks"] == []

    response = client.get(f"/tasks/{data['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == data["id"]


def test_blank_title_is_400(client, auth_headers):
    response = client.post("/tasks", headers=auth_headers, json={"title": "   "})
    assert response.status_code == 400
    assert "title" in response.json()["detail"]


def test_unknown_task_is_404(client, auth_headers):
    response = client.get(f"/tasks/{uuid4()}", headers=auth_headers)
    assert response.status_code == 404
    assert "was not found" in response.json()["detail"]


def test_patch_task(client, auth_headers):
    task = client.post("/tasks", headers=auth_headers, json={"title": "Draft"}).json()
    response = client.patch(
        f"/tasks/{task['id']}",
        headers=auth_headers,
        json={"title": "Final", "status": "doing", "note": "check numbers"}
    )
    assert response.status_code == 200
    data = response.json()
    assert (data["title"], data["status"], data["note"]) == ("Final", "doing", "check numbers")


def test_patch_task_is_all_or_nothing(client, auth_headers):
    task = client.post("/tasks", headers=auth_headers, json={"title": "Draft"}).json()
    response = client.patch(f"/tasks/{task['id']}", headers=auth_headers, json={"note": "kept?", "title": "   "})
    assert response.status_code == 400

    data = client.get(f"/tasks/{task['id']}", headers=auth_headers).json()
    assert (data["title"], data["note"]) == ("Draft", None)


def test_name_suggestions(client, auth_headers):
    client.post("/tasks", headers=auth_headers, json={"title": "Water plants"})
    client.post("/tasks", headers=auth_headers, json={"title": "Walk dog"})
    client.post("/tasks", headers=auth_headers, json={"title": "water plants"})

    response = client.get("/tasks/suggestions", headers=auth_headers, params={"prefix": "wa"})
    assert response.status_code == 200
    assert response.json() == ["Water plants", "Walk dog"]

    response = client.get("/tasks/suggestions", headers=auth_headers, params={"prefix": "wa", "subtask": True})
    assert response.json() == []


def test_subtasks_and_completion(client, auth_headers):
    parent = client.post("/tasks", headers=auth_headers, json={"title": "Parent"}).json()
    response = client.post(f"/tasks/{parent['id']}/subtasks", headers=auth_headers, json={"title": "Child"})
    assert response.status_code == 201
    child = response.json()
    assert child["parent_task_id"] == parent["id"]

    response = client.post(f"/tasks/{parent['id']}/complete", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["is_completed"] is True
    assert data["subtasks"][0]["is_completed"] is True

    response = client.post(f"/tasks/{parent['id']}/uncomplete", headers=auth_headers)
    assert response.json()["is_completed"] is False
    assert response.json()["subtasks"][0]["is_completed"] is True


def test_subtask_cannot_be_important_or_moved(client, auth_headers):
    project = client.post("/projects", headers=auth_headers, json={"name": "Work"}).json()
    parent = client.post("/tasks", headers=auth_headers, json={"title": "Parent"}).json()
    child = client.post(f"/tasks/{parent['id']}/subtasks", headers=auth_headers, json={"title": "Child"}).json()

    assert client.post(f"/tasks/{child['id']}/important", headers=auth_headers).status_code == 409
    response = client.post(f"/tasks/{child['id']}/move", headers=auth_headers, json={"project_id": project["id"]})
    assert response.status_code == 409


def test_due_date_and_reminder(client, auth_headers):
    task = client.post("/tasks", headers=auth_headers, json={"title": "Call"}).json()

    response = client.put(
        f"/tasks/{task['id']}/due",
        headers=auth_headers,
        json={"due_date_local": "2026-02-10", "due_time_local": "10:00:00"}
    )
    assert response.status_code == 200
    assert response.json()["due_at_utc"].startswith("2026-02-10T09:00:00")

    response = client.post(
        f"/tasks/{task['id']}/reminders",
        headers=auth_headers,
        json={"mode": "relative_to_due_date_time", "minutes_before": 15}
    )
    assert response.status_code == 201
    assert response.json()["trigger_at_utc"].startswith("2026-02-10T08:45:00")


def test_relative_reminder_without_time_is_409(client, auth_headers):
    task = client.post("/tasks", headers=auth_headers, json={"title": "Call"}).json()
    client.put(f"/tasks/{task['id']}/due", headers=auth_headers, json={"due_date_local": "2026-02-10"})

    response = client.post(
        f"/tasks/{task['id']}/reminders",
        headers=auth_headers,
        json={"mode": "relative_to_due_date_time", "minutes_before": 15}
    )
    assert response.status_code == 409

    response = client.post(
        f"/tasks/{task['id']}/reminders",
        headers=auth_headers,
        json={"mode": "date_only_fallback_time", "fallback_local_time": "09:00:00"}
    )
    assert response.status_code == 201
    assert response.json()["trigger_at_utc"].startswith("2026-02-10T08:00:00")


def test_reorder_unassigned(client, auth_headers):
    ids = [client.post("/tasks", headers=auth_headers, json={"title": t}).json()["id"] for t in "abc"]

    response = client.post("/tasks/reorder", headers=auth_headers, json={"ordered_task_ids": [ids[2], ids[0]]})
    assert response.status_code == 200
    assert [t["title"] for t in response.json()] == ["c", "a", "b"]

    response = client.post("/tasks/reorder", headers=auth_headers, json={"ordered_task_ids": [ids[0], ids[0]]})
    assert response.status_code == 400

    listed = client.get("/tasks", headers=auth_headers).json()
    assert [t["sort_order"] for t in listed] == [0, 1, 2]


def test_delete_task(client, auth_headers):
    task = client.post("/tasks", headers=auth_headers, json={"title": "Temp"}).json()
    assert client.delete(f"/tasks/{task['id']}", headers=auth_headers).status_code == 204
    assert client.delete(f"/tasks/{task['id']}", headers=auth_headers).status_code == 404


# ========== PROJECTS ==========
def test_foreign_project_is_403(client, auth_headers):
    client.post("/auth/signup", json={"name": "Bob", "email": "bob@example.com", "password": "pass123"})
    bob_token = client.post("/auth/login", json={"email": "bob@example.com", "password": "pass123"}).json()["access_token"]
    bob_headers = {"Authorization": f"Bearer {bob_token}"}
    bob_project = client.post("/projects", headers=bob_headers, json={"name": "Bob's"}).json()

    response = client.post("/tasks", headers=auth_headers, json={"title": "Sneaky", "project_id": bob_project["id"]})
    assert response.status_code == 403
    assert client.get(f"/projects/{bob_project['id']}", headers=auth_headers).status_code == 403


def test_project_crud(client, auth_headers):
    response = client.post("/projects", headers=auth_headers, json={"name": "Home", "color": "#00ff00"})
    assert response.status_code == 201
    project = response.json()
    assert project["view_type"] == "list"

    response = client.put(f"/projects/{project['id']}/view-type", headers=auth_headers, json={"view_type": "board"})
    assert response.json()["view_type"] == "board"

    response = client.put(f"/projects/{project['id']}/name", headers=auth_headers, json={"name": "House"})
    assert response.json()["name"] == "House"

    assert len(client.get("/projects", headers=auth_headers).json()) == 1
    assert client.delete(f"/projects/{project['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/projects/{project['id']}", headers=auth_headers).status_code == 404


def test_export_and_import(client, auth_headers):
    project = client.post("/projects", headers=auth_headers, json={"name": "Trip"}).json()
    parent = client.post("/tasks", headers=auth_headers, json={"title": "Pack", "project_id": project["id"]}).json()
    client.post(f"/tasks/{parent['id']}/subtasks", headers=auth_headers, json={"title": "Socks"})

    snapshot = client.get(f"/projects/{project['id']}/export", headers=auth_headers).json()
    assert snapshot["project"]["name"] == "Trip"
    assert snapshot["tasks"][0]["subtasks"][0]["title"] == "Socks"

    # same ids already exist
    assert client.post("/projects/import", headers=auth_headers, json=snapshot).status_code == 409

    client.delete(f"/projects/{project['id']}", headers=auth_headers)
    response = client.post("/projects/import", headers=auth_headers, json=snapshot)
    assert response.status_code == 201
    assert response.json()["id"] == project["id"]

    tasks = client.get(f"/projects/{project['id']}/tasks", headers=auth_headers).json()
    assert [t["title"] for t in tasks] == ["Pack"]
    assert [t["title"] for t in tasks[0]["subtasks"]] == ["Socks"]


# ========== SECTIONS ==========
def test_sections_listing_and_rules(client, auth_headers):
    sections = client.get("/sections", headers=auth_headers).json()
    assert [s["name"] for s in sections] == ["Recent", "Today", "Important", "This Week", "Upcoming"]

    system_id = sections[0]["id"]
    assert client.delete(f"/sections/{system_id}", headers=auth_headers).status_code == 409

    response = client.post("/sections", headers=auth_headers, json={"name": "Flagged", "due_bucket": "important"})
    assert response.status_code == 201
    section = response.json()

    flagged = client.post("/tasks", headers=auth_headers, json={"title": "Flagged"}).json()
    client.post(f"/tasks/{flagged['id']}/important", headers=auth_headers)
    picked = client.post("/tasks", headers=auth_headers, json={"title": "Picked"}).json()
    client.post("/tasks", headers=auth_headers, json={"title": "Ignored"})

    response = client.post(f"/sections/{section['id']}/tasks/{picked['id']}", headers=auth_headers)
    assert response.json()["manual_task_ids"] == [picked["id"]]

    titles = {t["title"] for t in client.get(f"/sections/{section['id']}/tasks", headers=auth_headers).json()}
    assert titles == {"Flagged", "Picked"}

    response = client.put(
        f"/sections/{section['id']}/rule",
        headers=auth_headers,
        json={
            "due_bucket": "no_due_date",
            "include_assigned_tasks": True,
            "include_unassigned_tasks": True,
            "include_done_tasks": False,
            "include_cancelled_tasks": False,
        }
    )
    assert response.json()["due_bucket"] == "no_due_date"
    assert len(client.get(f"/sections/{section['id']}/tasks", headers=auth_headers).json()) == 3

    assert client.delete(f"/sections/{section['id']}", headers=auth_headers).status_code == 204


# ========== SCHEDULES & FOCUS ==========
def test_subscription_schedules(client, auth_headers):
    schedules = client.get("/subscription/schedules", headers=auth_headers).json()
    assert len(schedules) == 1
    assert schedules[0]["is_open_ended"] is True

    response = client.post(
        "/subscription/schedules",
        headers=auth_headers,
        json={"starts_on": "2026-03-01", "ends_on": "2026-02-01"}
    )
    assert response.status_code == 400

    response = client.post(
        "/subscription/schedules",
        headers=auth_headers,
        json={"starts_on": "2026-03-01", "ends_on": "2026-03-31"}
    )
    assert response.status_code == 201
    assert response.json()["is_open_ended"] is False


def test_focus_sessions(client, auth_headers):
    task = client.post("/tasks", headers=auth_headers, json={"title": "Deep work"}).json()

    response = client.post("/focus-sessions", headers=auth_headers, json={"task_id": task["id"]})
    assert response.status_code == 201
    assert response.json()["task_id"] == task["id"]
    assert response.json()["is_completed"] is False

    response = client.post("/focus-sessions/end", headers=auth_headers)
    assert response.json()["is_completed"] is True
    assert client.post("/focus-sessions/end", headers=auth_headers).json() is None

    assert len(client.get("/focus-sessions", headers=auth_headers).json()) == 1
    response = client.post("/focus-sessions", headers=auth_headers, json={"task_id": str(uuid4())})
    assert response.status_code == 404
