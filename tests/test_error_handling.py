# tests/test_error_handling.py

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from app.auth.models import User, UserRole
from app.core.clock import utcnow
from app.core.error_handlers import register_error_handlers
from app.core.exceptions import ResourceAlreadyExistsError, ValidationError
from app.core.middleware import add_middleware
from app.core.service_base import BaseService
from app.tasks.models import Task, TaskCategory, TaskStatus

from .factories import auth_headers, make_task


@pytest.fixture()
def failing_app() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)
    add_middleware(app)

    @app.post("/tasks/{task_id}/owner")
    async def clash(task_id: str):
        raise IntegrityError(
            "UPDATE users SET email=%(email)s", {},
            Exception('duplicate key value violates unique constraint "ix_users_email"')
        )

    @app.get("/unreachable")
    async def unreachable():
        raise OperationalError("SELECT 1", {}, Exception("could not connect to server"))

    @app.get("/crash")
    async def crash():
        raise RuntimeError("connection string with password=hunter2")

    return TestClient(app, raise_server_exceptions=False)


def test_duplicate_email_at_commit_is_a_conflict(db_session, employee) -> None:
    now = utcnow()
    db_session.add(User(
        name="Bob Twin", email=employee.email, password_hash="not-a-hash",
        role=UserRole.EMPLOYEE, created_at=now, updated_at=now
    ))

    with pytest.raises(ResourceAlreadyExistsError) as excinfo:
        BaseService(db_session).safe_commit()

    assert excinfo.value.status_code == 409
    assert excinfo.value.detail == "Email already registered"


def test_other_constraint_failures_are_bad_requests(db_session, admin, employee) -> None:
    now = utcnow()
    db_session.add(Task(
        title=None, description="No title", category=TaskCategory.BACKEND, status=TaskStatus.NEW,
        assigned_to=employee.id, assigned_by=admin.id,
        due_date=now, created_at=now, updated_at=now
    ))

    with pytest.raises(ValidationError) as excinfo:
        BaseService(db_session).safe_commit()

    assert excinfo.value.detail == "Data integrity constraint violated"


def test_escaped_integrity_error_maps_to_email_conflict(failing_app) -> None:
    response = failing_app.post("/tasks/abc/owner", headers={"X-Request-ID": "req-42"})

    assert response.status_code == 409
    body = response.json()
    assert body["detail"] == "Email already registered"
    assert body["error_code"] == "RESOURCE_ALREADY_EXISTS"
    assert body["request_id"] == "req-42"
    assert response.headers["X-Request-ID"] == "req-42"


def test_lost_database_is_service_unavailable(failing_app) -> None:
    response = failing_app.get("/unreachable")

    assert response.status_code == 503
    assert response.json()["error_code"] == "DATABASE_UNAVAILABLE"


def test_unexpected_errors_hide_internals(failing_app) -> None:
    response = failing_app.get("/crash")

    assert response.status_code == 500
    assert response.json()["error_code"] == "INTERNAL_SERVER_ERROR"
    assert "hunter2" not in response.text


def test_unknown_route_uses_the_error_body(client) -> None:
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json()["error"] is True
    assert response.json()["error_code"] == "HTTP_EXCEPTION"


def test_error_log_names_principal_and_task(client, db_session, admin, employee, other_employee, caplog) -> None:
    task = make_task(db_session, admin, employee)
    caplog.set_level(logging.WARNING, logger="app.core.error_handlers")

    response = client.get(f"/api/tasks/{task.id}", headers=auth_headers(other_employee))

    assert response.status_code == 403
    [record] = [r for r in caplog.records if r.name == "app.core.error_handlers"]
    assert record.user_id == str(other_employee.id)
    assert record.role == "employee"
    assert record.task_id == str(task.id)


def test_access_log_carries_request_id_and_principal(client, employee, caplog) -> None:
    caplog.set_level(logging.INFO, logger="app.core.middleware")

    response = client.get("/api/auth/me", headers={**auth_headers(employee), "X-Request-ID": "trace-7"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "trace-7"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    [record] = [r for r in caplog.records if r.name == "app.core.middleware"]
    assert record.request_id == "trace-7"
    assert record.user_id == str(employee.id)
    assert record.status_code == 200
