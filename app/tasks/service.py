import logging
import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.auth.models import User, UserRole
from app.core.clock import as_utc, utcnow
from app.core.config import Settings, settings as default_settings
from app.core.dependencies import require_owner_or_admin, require_role
from app.core.exceptions import (
    InsufficientPermissionsError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.service_base import BaseService, like_pattern
from app.core.validators import validate_max_length, validate_required_text
from app.tasks.models import (
    DESCRIPTION_MAX_LENGTH,
    FAILURE_REASON_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Task,
    TaskCategory,
    TaskPriority,
    TaskStatus,
)
from app.tasks.notifications import TaskNotificationService
from app.tasks.schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

# new -> active -> completed | failed; completed and failed are terminal
ALLOWED_TRANSITIONS = {
    TaskStatus.NEW: {TaskStatus.ACTIVE},
    TaskStatus.ACTIVE: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}

TRANSITION_ERRORS = {
    TaskStatus.ACTIVE: "Only new tasks can be accepted",
    TaskStatus.COMPLETED: "Only active tasks can be completed",
    TaskStatus.FAILED: "Only active tasks can be marked as failed",
}

EDITABLE_FIELDS = ("title", "description", "category", "priority", "due_date", "assigned_to")


def ensure_transition(current: TaskStatus, target: TaskStatus) -> None:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStateTransitionError(
            TRANSITION_ERRORS.get(target, "Invalid status transition"),
            current_status=current.value,
            target_status=target.value
        )


def count_by_status(statuses) -> Dict[str, int]:
    counts = {"total": 0, "new": 0, "active": 0, "completed": 0, "failed": 0}
    for status in statuses:
        counts[status.value] += 1
        counts["total"] += 1
    return counts


def _parse_enum(enum_class, value, field_name: str):
    if value is None or isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}", field=field_name, value=value)


class TaskService(BaseService):
    def __init__(
        self,
        db: Session,
        notifier: Optional[TaskNotificationService] = None,
        settings: Settings = default_settings
    ):
        super().__init__(db, settings)
        self.notifier = notifier

    # Queries

    def list_tasks(
        self,
        principal: User,
        status: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to: Optional[str] = None,
        search: Optional[str] = None
    ) -> Tuple[List[Task], Dict[str, int]]:
        """Admins see every task, employees only their own."""
        query = self.db.query(Task)

        if principal.role == UserRole.EMPLOYEE:
            query = query.filter(Task.assigned_to == principal.id)
        elif assigned_to:
            try:
                query = query.filter(Task.assigned_to == uuid.UUID(str(assigned_to)))
            except ValueError:
                raise ValidationError("Invalid employee ID", field="assigned_to", value=assigned_to)

        if status and status != "all":
            query = query.filter(Task.status == _parse_enum(TaskStatus, status, "status"))

        if category:
            query = query.filter(Task.category == _parse_enum(TaskCategory, category, "category"))

        if priority:
            query = query.filter(Task.priority == _parse_enum(TaskPriority, priority, "priority"))

        if search:
            pattern = like_pattern(search)
            query = query.filter(or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\")
            ))

        tasks = query.order_by(Task.created_at.desc()).all()
        return tasks, count_by_status(task.status for task in tasks)

    def get_task(self, principal: User, task_id) -> Task:
        """Load then check access, so a foreign id yields Forbidden rather than NotFound."""
        task = self.get_or_404(Task, task_id, "Task")
        require_owner_or_admin(principal, task.assigned_to, "Not authorized to view this task")
        return task

    def get_task_stats(self, principal: User) -> Dict:
        require_role(principal, UserRole.ADMIN)

        stats = {"total": 0, "new": 0, "active": 0, "completed": 0, "failed": 0, "by_category": {}}

        for status, count in self.db.query(Task.status, func.count(Task.id)).group_by(Task.status).all():
            stats[status.value] = count
            stats["total"] += count

        for category, count in self.db.query(Task.category, func.count(Task.id)).group_by(Task.category).all():
            stats["by_category"][category.value] = count

        return stats

    # Admin operations

    def _get_assignable_employee(self, user_id) -> User:
        try:
            employee = self.get_or_404(User, user_id, "Employee")
        except ResourceNotFoundError:
            raise ResourceNotFoundError("Employee", str(user_id))

        if employee.role != UserRole.EMPLOYEE:
            raise ValidationError(
                "Tasks can only be assigned to employees",
                field="assigned_to",
                value=str(user_id)
            )
        return employee

    def _validate_fields(self, title=None, description=None):
        if title is not None:
            validate_required_text(title, "title", "Title is required")
            validate_max_length(title.strip(), TITLE_MAX_LENGTH, "title")
        if description is not None:
            validate_required_text(description, "description", "Description is required")
            validate_max_length(description.strip(), DESCRIPTION_MAX_LENGTH, "description")

    def create_task(self, principal: User, task_data: TaskCreate) -> Task:
        require_role(principal, UserRole.ADMIN)
        self._validate_fields(task_data.title, task_data.description)

        employee = self._get_assignable_employee(task_data.assigned_to)

        now = utcnow()
        task = Task(
            title=task_data.title.strip(),
            description=task_data.description.strip(),
            category=_parse_enum(TaskCategory, task_data.category, "category"),
            priority=_parse_enum(TaskPriority, task_data.priority, "priority") or TaskPriority.MEDIUM,
            status=TaskStatus.NEW,
            assigned_to=employee.id,
            assigned_by=principal.id,
            due_date=as_utc(task_data.due_date),
            created_at=now,
            updated_at=now,
        )

        self.db.add(task)
        self.safe_commit("Error creating task")
        self.db.refresh(task)

        self.log_service_action("create_task", "Task", str(task.id), {"assigned_to": str(employee.id)})

        if self.notifier:
            self.notifier.notify_task_assigned(task, employee, principal)

        return task

    def update_task(self, principal: User, task_id, task_data: TaskUpdate) -> Task:
        """Edit fields in any status. Never changes status."""
        require_role(principal, UserRole.ADMIN)
        task = self.get_or_404(Task, task_id, "Task")

        updates = task_data.model_dump(exclude_unset=True, exclude_none=True)
        updates = {key: value for key, value in updates.items() if key in EDITABLE_FIELDS}

        self._validate_fields(updates.get("title"), updates.get("description"))

        if "title" in updates:
            task.title = updates["title"].strip()
        if "description" in updates:
            task.description = updates["description"].strip()
        if "category" in updates:
            task.category = _parse_enum(TaskCategory, updates["category"], "category")
        if "priority" in updates:
            task.priority = _parse_enum(TaskPriority, updates["priority"], "priority")
        if "due_date" in updates:
            task.due_date = as_utc(updates["due_date"])
        if "assigned_to" in updates:
            task.assigned_to = self._get_assignable_employee(updates["assigned_to"]).id

        task.updated_at = utcnow()
        self.safe_commit("Error updating task")
        self.db.refresh(task)

        self.log_service_action("update_task", "Task", str(task.id), {"fields": sorted(updates)})
        return task

    def delete_task(self, principal: User, task_id) -> None:
        require_role(principal, UserRole.ADMIN)
        task = self.get_or_404(Task, task_id, "Task")

        self.db.delete(task)
        self.safe_commit("Error deleting task")

        self.log_service_action("delete_task", "Task", str(task_id))

    # Assignee transitions

    def _get_assigned_task(self, principal: User, task_id, action: str) -> Task:
        task = self.get_or_404(Task, task_id, "Task")
        if task.assigned_to != principal.id:
            raise InsufficientPermissionsError(f"Not authorized to {action} this task")
        return task

    def _transition(self, task: Task, target: TaskStatus, **values) -> Task:
        """Apply a status change only if the row still holds the status that was checked."""
        expected = task.status
        ensure_transition(expected, target)

        now = utcnow()
        values.update(status=target, updated_at=now)
        if target == TaskStatus.COMPLETED:
            values["completed_at"] = now
        elif target == TaskStatus.FAILED:
            values["failed_at"] = now

        updated = self.db.query(Task).filter(
            Task.id == task.id,
            Task.status == expected
        ).update(values, synchronize_session=False)

        if updated != 1:
            self.db.rollback()
            self.db.refresh(task)
            ensure_transition(task.status, target)
            raise InvalidStateTransitionError(
                "Task was modified concurrently, please retry",
                current_status=task.status.value,
                target_status=target.value
            )

        self.safe_commit("Error updating task status")
        self.db.refresh(task)

        self.log_service_action(
            f"task_{target.value}", "Task", str(task.id),
            {"from_status": expected.value, "to_status": target.value}
        )
        return task

    def accept_task(self, principal: User, task_id) -> Task:
        task = self._get_assigned_task(principal, task_id, "accept")
        return self._transition(task, TaskStatus.ACTIVE)

    def complete_task(self, principal: User, task_id, notes: Optional[str] = None) -> Task:
        task = self._get_assigned_task(principal, task_id, "complete")
        ensure_transition(task.status, TaskStatus.COMPLETED)
        validate_max_length(notes, NOTES_MAX_LENGTH, "notes")

        task = self._transition(task, TaskStatus.COMPLETED, notes=notes or "")

        if self.notifier:
            self.notifier.notify_task_completed(task, task.assignee, task.assigner)
        return task

    def fail_task(self, principal: User, task_id, reason: Optional[str]) -> Task:
        task = self._get_assigned_task(principal, task_id, "update")
        ensure_transition(task.status, TaskStatus.FAILED)

        reason = validate_required_text(reason, "reason", "Please provide a reason for failure")
        validate_max_length(reason, FAILURE_REASON_MAX_LENGTH, "reason", "Reason")

        task = self._transition(task, TaskStatus.FAILED, failure_reason=reason)

        if self.notifier:
            self.notifier.notify_task_failed(task, task.assignee, task.assigner)
        return task
