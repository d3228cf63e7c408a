from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.dependencies import get_current_admin_user, get_current_user
from app.core.email_service import EmailService, get_email_service
from app.auth.models import User
from app.auth.schemas import MessageResponse
from app.tasks.notifications import TaskNotificationService
from app.tasks.schemas import (
    TaskCompleteRequest,
    TaskCreate,
    TaskFailRequest,
    TaskListResponse,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)
from app.tasks.service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
) -> TaskService:
    notifier = TaskNotificationService(email_service, settings, background_tasks)
    return TaskService(db, notifier, settings)


@router.get("/", response_model=TaskListResponse)
async def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[str] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    """List tasks. Employees only ever see their own."""
    tasks, stats = task_service.list_tasks(
        current_user,
        status=status_filter,
        category=category,
        priority=priority,
        assigned_to=assigned_to,
        search=search
    )
    return TaskListResponse(
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        stats=stats
    )


@router.get("/stats", response_model=TaskStatsResponse)
async def get_task_stats(
    current_user: User = Depends(get_current_admin_user),
    task_service: TaskService = Depends(get_task_service)
):
    """Task counts by status and category."""
    return task_service.get_task_stats(current_user)


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: User = Depends(get_current_admin_user),
    task_service: TaskService = Depends(get_task_service)
):
    """Create a task and notify the assignee."""
    return TaskResponse.model_validate(task_service.create_task(current_user, task_data))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    return TaskResponse.model_validate(task_service.get_task(current_user, task_id))


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    current_user: User = Depends(get_current_admin_user),
    task_service: TaskService = Depends(get_task_service)
):
    return TaskResponse.model_validate(task_service.update_task(current_user, task_id, task_data))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_admin_user),
    task_service: TaskService = Depends(get_task_service)
):
    task_service.delete_task(current_user, task_id)
    return MessageResponse(message="Task deleted successfully")


@router.put("/{task_id}/accept", response_model=TaskResponse)
async def accept_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    """Assignee moves a new task to active."""
    return TaskResponse.model_validate(task_service.accept_task(current_user, task_id))


@router.put("/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    task_id: str,
    request: Optional[TaskCompleteRequest] = None,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    """Assignee completes an active task; the assigning admin is notified."""
    notes = request.notes if request else None
    return TaskResponse.model_validate(task_service.complete_task(current_user, task_id, notes))


@router.put("/{task_id}/fail", response_model=TaskResponse)
async def fail_task(
    task_id: str,
    request: Optional[TaskFailRequest] = None,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service)
):
    """Assignee marks an active task as failed with a reason."""
    reason = request.reason if request else None
    return TaskResponse.model_validate(task_service.fail_task(current_user, task_id, reason))
