from sqlalchemy import text

from eventops.models import Task


def new_task(client, **overrides):
    payload = {
        "description": "Book the venue",
        "departments": ["IT", "Logistics"],
        "dueDate": "2025-03-15T10:00:00",
    }
    payload.update(overrides)
    r = client.post("/tasks", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_defaults_to_not_started(admin_client):
    task = new_task(admin_client)

    assert task["status"] == "not_started"
    assert task["priority"] == "medium"
    assert task["departments"] == ["IT", "Logistics"]
    assert task["dueDate"].startswith("2025-03-15T10:00:00")


def test_create_keeps_explicit_status(admin_client):
    task = new_task(admin_client, status="blocked", priority="high", notes="waiting on quote")
    assert task["status"] == "blocked"
    assert task["priority"] == "high"
    assert task["notes"] == "waiting on quote"


def test_guest_cannot_create(guest_client, db):
    r = guest_client.post("/tasks", json={"description": "Nope", "departments": []})
    assert r.status_code == 401
    assert db.query(Task).count() == 0


def test_anonymous_cannot_create(client, db):
    r = client.post("/tasks", json={"description": "Nope", "departments": []})
    assert r.status_code == 401
    assert db.query(Task).count() == 0


def test_guest_cannot_patch_or_delete(client):
    client.post("/auth/login", json={"password": "letmein"})
    task = new_task(client)
    client.post("/auth/guest")

    assert client.patch(f"/tasks/{task['id']}", json={"status": "completed"}).status_code == 401
    assert client.delete(f"/tasks/{task['id']}").status_code == 401
    assert client.get(f"/tasks/{task['id']}").json()["status"] == "not_started"


def test_list_newest_first_and_readable_by_anyone(client):
    client.post("/auth/login", json={"password": "letmein"})
    first = new_task(client, description="first")
    second = new_task(client, description="second")
    client.post("/auth/logout")

    r = client.get("/tasks")
    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [second["id"], first["id"]]


def test_patch_touches_only_sent_fields(admin_client):
    task = new_task(admin_client, notes="keep me")

    r = admin_client.patch(f"/tasks/{task['id']}", json={"status": "in_progress"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "in_progress"
    assert body["description"] == "Book the venue"
    assert body["departments"] == ["IT", "Logistics"]
    assert body["notes"] == "keep me"

    r = admin_client.patch(f"/tasks/{task['id']}", json={"departments": ["Catering"], "notes": None})
    assert r.json()["departments"] == ["Catering"]
    assert r.json()["notes"] is None


def test_patch_rejects_unknown_status(admin_client):
    task = new_task(admin_client)
    r = admin_client.patch(f"/tasks/{task['id']}", json={"status": "done-ish"})
    assert r.status_code == 400


def test_put_replaces_fields_and_keeps_departments_when_omitted(admin_client):
    task = new_task(admin_client, notes="old")

    r = admin_client.put(
        f"/tasks/{task['id']}",
        json={"description": "Book a bigger venue", "status": "completed", "dueDate": "2025-04-01T00:00:00"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["description"] == "Book a bigger venue"
    assert body["status"] == "completed"
    assert body["notes"] is None
    assert body["departments"] == ["IT", "Logistics"]

    r = admin_client.put(
        f"/tasks/{task['id']}",
        json={"description": "Book a bigger venue", "departments": []},
    )
    assert r.json()["departments"] == []


def test_delete(admin_client):
    task = new_task(admin_client)

    assert admin_client.delete(f"/tasks/{task['id']}").status_code == 204
    assert admin_client.get(f"/tasks/{task['id']}").status_code == 404
    assert admin_client.delete(f"/tasks/{task['id']}").status_code == 404


def test_missing_task_is_404(admin_client):
    assert admin_client.get("/tasks/999").status_code == 404
    assert admin_client.patch("/tasks/999", json={"status": "blocked"}).status_code == 404


def test_undecodable_departments_come_back_empty(admin_client, db):
    good = new_task(admin_client, description="good")
    bad = new_task(admin_client, description="bad")
    odd = new_task(admin_client, description="odd")

    db.execute(text("UPDATE tasks SET departments = 'not json [' WHERE id = :id"), {"id": bad["id"]})
    db.execute(text("UPDATE tasks SET departments = '{\"IT\": 1}' WHERE id = :id"), {"id": odd["id"]})
    db.commit()

    r = admin_client.get("/tasks")
    assert r.status_code == 200
    by_id = {t["id"]: t for t in r.json()}
    assert by_id[good["id"]]["departments"] == ["IT", "Logistics"]
    assert by_id[bad["id"]]["departments"] == []
    assert by_id[odd["id"]]["departments"] == []


def test_non_string_department_entries_are_dropped(admin_client, db):
    task = new_task(admin_client)
    db.execute(text("UPDATE tasks SET departments = '[\"IT\", 3, null]' WHERE id = :id"), {"id": task["id"]})
    db.commit()

    assert admin_client.get(f"/tasks/{task['id']}").json()["departments"] == ["IT"]


def test_timezone_aware_due_date_is_stored_as_utc(admin_client):
    task = new_task(admin_client, dueDate="2025-03-31T23:30:00-02:00")
    assert task["dueDate"].startswith("2025-04-01T01:30:00")
