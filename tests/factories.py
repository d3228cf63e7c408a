# tests/factories.py

from datetime import timedelta

from app.auth.models import User, UserRole
from app.auth.schemas import UserCreate
from app.auth.service import AuthService
from app.core.clock import utcnow
from app.core.security import create_access_token
from app.tasks.models import Task, TaskCategory, TaskPriority, TaskStatus

PASSWORD = "password123"


def make_user(db, name: str, email: str, role: UserRole = UserRole.EMPLOYEE, password: str = PASSWORD) -> User:
    return AuthService(db).create_user(UserCreate(name=name, email=email, password=password), role=role)


def make_task(db, admin: User, employee: User, title: str = "Build login page", **fields) -> Task:
    """Insert a task directly, bypassing the service and its notifications."""
    now = utcnow()
    task = Task(
        title=title,
        description=fields.pop("description", "Implement the login form"),
        category=fields.pop("category", TaskCategory.FRONTEND),
        priority=fields.pop("priority", TaskPriority.MEDIUM),
        status=fields.pop("status", TaskStatus.NEW),
        assigned_to=employee.id,
        assigned_by=admin.id,
        due_date=fields.pop("due_date", now + timedelta(days=3)),
        created_at=fields.pop("created_at", now),
        updated_at=now,
        **fields
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}
