from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.dependencies import get_current_admin_user
from app.auth.models import User
from app.auth.schemas import MessageResponse, UserResponse
from app.employees.schemas import (
    DashboardResponse,
    EmployeeCreate,
    EmployeeDetailResponse,
    EmployeeListResponse,
    EmployeePasswordReset,
    EmployeeUpdate,
    EmployeeWithStats,
)
from app.employees.service import EmployeeService
from app.tasks.schemas import TaskResponse

router = APIRouter(prefix="/employees", tags=["employees"])


def get_employee_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> EmployeeService:
    return EmployeeService(db, settings)


@router.get("/", response_model=EmployeeListResponse)
async def list_employees(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    """List employees with per-employee task counts."""
    employees = employee_service.list_employees(search, is_active, skip, limit)
    return EmployeeListResponse(employees=[
        EmployeeWithStats(**UserResponse.model_validate(employee).model_dump(), task_stats=stats)
        for employee, stats in employees
    ])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    """Employee totals, task counts, recent tasks and top performers."""
    dashboard = employee_service.get_dashboard()
    dashboard["recent_tasks"] = [TaskResponse.model_validate(task) for task in dashboard["recent_tasks"]]
    return DashboardResponse(**dashboard)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    """Create a new employee."""
    return employee_service.create_employee(employee_data)


@router.get("/{employee_id}", response_model=EmployeeDetailResponse)
async def get_employee(
    employee_id: str,
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    """Get employee by ID with their tasks."""
    employee, tasks, stats = employee_service.get_employee_detail(employee_id)
    return EmployeeDetailResponse(
        employee=UserResponse.model_validate(employee),
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        stats=stats
    )


@router.put("/{employee_id}", response_model=UserResponse)
async def update_employee(
    employee_id: str,
    employee_data: EmployeeUpdate,
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    """Update employee information."""
    return employee_service.update_employee(employee_id, employee_data)


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete_employee(
    employee_id: str,
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    """Deactivate employee (soft delete)."""
    employee_service.deactivate_employee(employee_id)
    return MessageResponse(message="Employee deactivated successfully")


@router.put("/{employee_id}/reset-password", response_model=MessageResponse)
async def reset_employee_password(
    employee_id: str,
    request: EmployeePasswordReset,
    current_user: User = Depends(get_current_admin_user),
    employee_service: EmployeeService = Depends(get_employee_service)
):
    employee_service.reset_employee_password(employee_id, request.new_password)
    return MessageResponse(message="Password reset successfully")
