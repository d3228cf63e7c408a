from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from uuid import UUID
from app.auth.schemas import UserResponse
from app.tasks.schemas import TaskResponse, TaskStatusCounts


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None


class EmployeePasswordReset(BaseModel):
    new_password: str


class EmployeeWithStats(UserResponse):
    task_stats: TaskStatusCounts


class EmployeeListResponse(BaseModel):
    employees: List[EmployeeWithStats]


class EmployeeDetailResponse(BaseModel):
    employee: UserResponse
    tasks: List[TaskResponse]
    stats: TaskStatusCounts


class EmployeeCounts(BaseModel):
    total: int
    active: int


class TopPerformer(BaseModel):
    id: UUID
    name: str
    email: str
    completed_count: int


class DashboardResponse(BaseModel):
    employees: EmployeeCounts
    tasks: TaskStatusCounts
    recent_tasks: List[TaskResponse]
    top_performers: List[TopPerformer]
