from pydantic import AliasChoices, BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from uuid import UUID
from app.auth.schemas import UserSummary
from app.tasks.models import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TaskCategory,
    TaskPriority,
    TaskStatus,
)


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    category: TaskCategory
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: UUID
    due_date: datetime


class TaskUpdate(BaseModel):
    """Admin field edits. Status is not editable here."""
    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    category: Optional[TaskCategory] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[UUID] = None
    due_date: Optional[datetime] = None


# Length limits on these bodies are checked by TaskService after the status check
class TaskCompleteRequest(BaseModel):
    notes: Optional[str] = None


class TaskFailRequest(BaseModel):
    reason: Optional[str] = None


class TaskResponse(BaseModel):
    id: UUID
    title: str
    description: str
    category: TaskCategory
    status: TaskStatus
    priority: TaskPriority
    assigned_to: UserSummary = Field(validation_alias=AliasChoices("assignee", "assigned_to"))
    assigned_by: UserSummary = Field(validation_alias=AliasChoices("assigner", "assigned_by"))
    due_date: datetime
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    is_overdue: bool
    age_in_days: int

    class Config:
        from_attributes = True


class TaskStatusCounts(BaseModel):
    total: int = 0
    new: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
    stats: TaskStatusCounts


class TaskStatsResponse(TaskStatusCounts):
    by_category: Dict[str, int] = {}
