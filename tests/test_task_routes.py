# tests/test_task_routes.py

from datetime import timedelta

from app.core.clock import utcnow
from app.tasks.models import TaskStatus

from .factories import auth_headers, make_task


def task_payload(employee, **overrides) -> dict:
    payload = {
        "title": "Set up CI",
        "description": "Run the test suite on every push",
        "category": "DevOps",
        "priority": "high",
        "assigned_to": str(employee.id),
        "due_date": (utcnow() + timedelta(days=5)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_admin_creates_task_with_embedded_people(client, admin, employee, email_service) -> None:
    response = client.post("/api/tasks/", json=task_payload(employee), headers=auth_headers(admin))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "new"
    assert body["priority"] == "high"
    assert body["category"] == "DevOps"
    assert body["assigned_to"] == {"id": str(employee.id), "name": employee.name, "email": employee.email}
    assert body["assigned_by"] == {"id": str(admin.id), "name": admin.name, "email": admin.email}
    assert body["is_overdue"] is False
    assert body["age_in_days"] <= 1
    assert len(email_service.sent_to(employee.email)) == 1


def test_priority_defaults_to_medium(client, admin, employee) -> None:
    payload = task_payload(employee)
    del payload["priority"]

    response = client.post("/api/tasks/", json=payload, headers=auth_headers(admin))

    assert response.status_code == 201
    assert response.json()["priority"] == "medium"


def test_employee_cannot_create_tasks(client, employee) -> None:
    response = client.post("/api/tasks/", json=task_payload(employee), headers=auth_headers(employee))

    assert response.status_code == 403
    assert response.json()["detail"] == "Role 'employee' is not authorized to access this route"


def test_create_validates_input(client, admin, employee) -> None:
    headers = auth_headers(admin)

    response = client.post("/api/tasks/", json=task_payload(employee, title="x" * 101), headers=headers)
    assert response.status_code == 400

    response = client.post("/api/tasks/", json=task_payload(employee, category="Marketing"), headers=headers)
    assert response.status_code == 400

    response = client.post("/api/tasks/", json=task_payload(admin), headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Tasks can only be assigned to employees"

    response = client.post(
        "/api/tasks/",
        json=task_payload(employee, assigned_to="00000000-0000-0000-0000-000000000000"),
        headers=headers
    )
    assert response.status_code == 404


def test_requests_without_a_token_are_rejected(client) -> None:
    response = client.get("/api/tasks/")

    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized to access this route"


def test_lifecycle_over_http(client, admin, employee, email_service) -> None:
    created = client.post("/api/tasks/", json=task_payload(employee), headers=auth_headers(admin)).json()
    headers = auth_headers(employee)

    response = client.put(f"/api/tasks/{created['id']}/accept", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    response = client.put(f"/api/tasks/{created['id']}/accept", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only new tasks can be accepted"

    response = client.put(f"/api/tasks/{created['id']}/complete", json={"notes": "Pipeline is green"}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["notes"] == "Pipeline is green"
    assert body["completed_at"] is not None

    response = client.put(f"/api/tasks/{created['id']}/fail", json={"reason": "Too late"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only active tasks can be marked as failed"

    assert [message["subject"] for message in email_service.sent_to(admin.email)] == ["Task Completed: Set up CI"]


def test_complete_accepts_an_empty_body(client, db_session, admin, employee) -> None:
    task = make_task(db_session, admin, employee, status=TaskStatus.ACTIVE)

    response = client.put(f"/api/tasks/{task.id}/complete", headers=auth_headers(employee))

    assert response.status_code == 200
    assert response.json()["notes"] == ""


def test_fail_validates_the_reason(client, db_session, admin, employee) -> None:
    task = make_task(db_session, admin, employee, status=TaskStatus.ACTIVE)
    headers = auth_headers(employee)

    response = client.put(f"/api/tasks/{task.id}/fail", json={}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please provide a reason for failure"

    response = client.put(f"/api/tasks/{task.id}/fail", json={"reason": "r" * 201}, headers=headers)
    assert response.status_code == 400

    response = client.put(f"/api/tasks/{task.id}/fail", json={"reason": "Requirements changed"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["failure_reason"] == "Requirements changed"
    assert response.json()["failed_at"] is not None


def test_other_employee_gets_forbidden(client, db_session, admin, employee, other_employee) -> None:
    task = make_task(db_session, admin, employee)

    response = client.get(f"/api/tasks/{task.id}", headers=auth_headers(other_employee))
    assert response.status_code == 403

    response = client.put(f"/api/tasks/{task.id}/accept", headers=auth_headers(other_employee))
    assert response.status_code == 403

    response = client.get(f"/api/tasks/{task.id}", headers=auth_headers(employee))
    assert response.status_code == 200


def test_malformed_task_id_is_not_found(client, admin) -> None:
    response = client.get("/api/tasks/not-a-uuid", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["detail"] == "Task not found"


def test_list_is_scoped_for_employees(client, db_session, admin, employee, other_employee) -> None:
    make_task(db_session, admin, employee, "Bob's task")
    make_task(db_session, admin, other_employee, "Carol's task")

    response = client.get("/api/tasks/", params={"assigned_to": str(other_employee.id)}, headers=auth_headers(employee))
    assert response.status_code == 200
    body = response.json()
    assert [task["title"] for task in body["tasks"]] == ["Bob's task"]
    assert body["stats"] == {"total": 1, "new": 1, "active": 0, "completed": 0, "failed": 0}

    response = client.get("/api/tasks/", params={"status": "all"}, headers=auth_headers(admin))
    assert response.json()["stats"]["total"] == 2

    response = client.get("/api/tasks/", params={"status": "bogus"}, headers=auth_headers(admin))
    assert response.status_code == 400


def test_stats_are_admin_only(client, db_session, admin, employee) -> None:
    make_task(db_session, admin, employee, status=TaskStatus.ACTIVE)

    response = client.get("/api/tasks/stats", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json() == {
        "total": 1, "new": 0, "active": 1, "completed": 0, "failed": 0,
        "by_category": {"Frontend": 1},
    }

    response = client.get("/api/tasks/stats", headers=auth_headers(employee))
    assert response.status_code == 403


def test_update_ignores_status(client, db_session, admin, employee) -> None:
    task = make_task(db_session, admin, employee)

    response = client.put(
        f"/api/tasks/{task.id}",
        json={"title": "Updated title", "status": "completed"},
        headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Updated title"
    assert response.json()["status"] == "new"


def test_delete_task(client, db_session, admin, employee) -> None:
    task = make_task(db_session, admin, employee)
    headers = auth_headers(admin)

    response = client.delete(f"/api/tasks/{task.id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Task deleted successfully"

    assert client.get(f"/api/tasks/{task.id}", headers=headers).status_code == 404
    assert client.delete(f"/api/tasks/{task.id}", headers=headers).status_code == 404


def test_status_is_checked_before_payload_length(client, db_session, admin, employee) -> None:
    headers = auth_headers(employee)
    completed = make_task(db_session, admin, employee, status=TaskStatus.COMPLETED)
    fresh = make_task(db_session, admin, employee)
    active = make_task(db_session, admin, employee, status=TaskStatus.ACTIVE)

    response = client.put(f"/api/tasks/{completed.id}/fail", json={"reason": "r" * 201}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only active tasks can be marked as failed"

    response = client.put(f"/api/tasks/{fresh.id}/complete", json={"notes": "n" * 501}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only active tasks can be completed"

    response = client.put(f"/api/tasks/{active.id}/fail", json={"reason": "r" * 201}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Reason cannot exceed 200 characters"
