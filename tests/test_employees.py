# tests/test_employees.py

from datetime import timedelta

from app.core.clock import utcnow
from app.tasks.models import TaskStatus

from .factories import PASSWORD, auth_headers, make_task, make_user


def test_employee_routes_are_admin_only(client, employee) -> None:
    headers = auth_headers(employee)

    assert client.get("/api/employees/", headers=headers).status_code == 403
    assert client.get("/api/employees/dashboard", headers=headers).status_code == 403
    assert client.get(f"/api/employees/{employee.id}", headers=headers).status_code == 403


def test_list_carries_task_stats(client, db_session, admin, employee, other_employee) -> None:
    make_task(db_session, admin, employee)
    make_task(db_session, admin, employee, status=TaskStatus.COMPLETED)

    response = client.get("/api/employees/", headers=auth_headers(admin))

    assert response.status_code == 200
    employees = {item["email"]: item for item in response.json()["employees"]}
    assert set(employees) == {employee.email, other_employee.email}
    assert employees[employee.email]["task_stats"] == {"total": 2, "new": 1, "active": 0, "completed": 1, "failed": 0}
    assert employees[other_employee.email]["task_stats"]["total"] == 0


def test_list_filters_by_search_and_activity(client, db_session, admin, employee, other_employee) -> None:
    other_employee.is_active = False
    db_session.commit()
    headers = auth_headers(admin)

    response = client.get("/api/employees/", params={"search": "CAROL"}, headers=headers)
    assert [item["email"] for item in response.json()["employees"]] == [other_employee.email]

    response = client.get("/api/employees/", params={"is_active": "true"}, headers=headers)
    assert [item["email"] for item in response.json()["employees"]] == [employee.email]


def test_get_employee_with_tasks(client, db_session, admin, employee) -> None:
    make_task(db_session, admin, employee, "First")
    make_task(db_session, admin, employee, "Second", status=TaskStatus.ACTIVE)

    response = client.get(f"/api/employees/{employee.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["employee"]["id"] == str(employee.id)
    assert {task["title"] for task in body["tasks"]} == {"First", "Second"}
    assert body["stats"]["active"] == 1


def test_admin_ids_are_not_employees(client, admin) -> None:
    headers = auth_headers(admin)

    assert client.get(f"/api/employees/{admin.id}", headers=headers).status_code == 404
    assert client.get("/api/employees/not-a-uuid", headers=headers).status_code == 404


def test_create_employee(client, admin) -> None:
    headers = auth_headers(admin)
    payload = {"name": "Eve Engineer", "email": "EVE@example.com", "password": "welcome1"}

    response = client.post("/api/employees/", json=payload, headers=headers)
    assert response.status_code == 201
    assert response.json()["role"] == "employee"
    assert response.json()["email"] == "eve@example.com"

    assert client.post("/api/employees/", json=payload, headers=headers).status_code == 409

    response = client.post("/api/auth/login", json={"email": "eve@example.com", "password": "welcome1"})
    assert response.status_code == 200


def test_update_employee(client, admin, employee, other_employee) -> None:
    headers = auth_headers(admin)

    response = client.put(f"/api/employees/{employee.id}", json={"name": "Bobby"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Bobby"

    response = client.put(f"/api/employees/{employee.id}", json={"email": other_employee.email}, headers=headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered"


def test_delete_deactivates_instead_of_removing(client, db_session, admin, employee) -> None:
    task = make_task(db_session, admin, employee)
    headers = auth_headers(admin)

    response = client.delete(f"/api/employees/{employee.id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Employee deactivated successfully"

    response = client.get(f"/api/employees/{employee.id}", headers=headers)
    assert response.json()["employee"]["is_active"] is False
    assert client.get(f"/api/tasks/{task.id}", headers=headers).status_code == 200

    response = client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
    assert response.status_code == 401


def test_admin_resets_employee_password(client, admin, employee) -> None:
    headers = auth_headers(admin)

    response = client.put(f"/api/employees/{employee.id}/reset-password", json={"new_password": "abc"}, headers=headers)
    assert response.status_code == 400

    response = client.put(f"/api/employees/{employee.id}/reset-password", json={"new_password": "reset-by-admin"}, headers=headers)
    assert response.status_code == 200

    response = client.post("/api/auth/login", json={"email": employee.email, "password": "reset-by-admin"})
    assert response.status_code == 200


def test_dashboard(client, db_session, admin, employee, other_employee) -> None:
    now = utcnow()
    for hours in range(6):
        make_task(db_session, admin, employee, f"Task {hours}", status=TaskStatus.COMPLETED,
                  created_at=now - timedelta(hours=hours))
    make_task(db_session, admin, other_employee, "Carol's", status=TaskStatus.COMPLETED,
              created_at=now - timedelta(days=1))
    make_user(db_session, "Idle Ivan", "ivan@example.com")

    response = client.get("/api/employees/dashboard", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["employees"] == {"total": 3, "active": 3}
    assert body["tasks"]["total"] == 7
    assert body["tasks"]["completed"] == 7
    assert [task["title"] for task in body["recent_tasks"]] == ["Task 0", "Task 1", "Task 2", "Task 3", "Task 4"]
    assert [(p["email"], p["completed_count"]) for p in body["top_performers"]] == [
        (employee.email, 6),
        (other_employee.email, 1),
    ]
