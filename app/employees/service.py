import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.auth.models import User, UserRole
from app.auth.schemas import UserCreate
from app.auth.service import AuthService
from app.core.clock import utcnow
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import ResourceNotFoundError
from app.core.service_base import BaseService, like_pattern
from app.core.validators import normalize_email, validate_password
from app.employees.schemas import EmployeeCreate, EmployeeUpdate
from app.tasks.models import Task, TaskStatus
from app.tasks.service import count_by_status

logger = logging.getLogger(__name__)

RECENT_TASKS_LIMIT = 5
TOP_PERFORMERS_LIMIT = 5


class EmployeeService(BaseService):
    def __init__(self, db: Session, settings: Settings = default_settings):
        super().__init__(db, settings)

    def _employee_query(self):
        return self.db.query(User).filter(User.role == UserRole.EMPLOYEE)

    def get_employee(self, employee_id) -> User:
        """Get an employee account. Admin ids count as missing."""
        try:
            employee = self.get_or_404(User, employee_id, "Employee")
        except ResourceNotFoundError:
            raise ResourceNotFoundError("Employee", str(employee_id))

        if employee.role != UserRole.EMPLOYEE:
            raise ResourceNotFoundError("Employee", str(employee_id))
        return employee

    def _task_stats_for(self, employee_ids: List) -> Dict:
        stats = {employee_id: count_by_status([]) for employee_id in employee_ids}
        if not employee_ids:
            return stats

        rows = (
            self.db.query(Task.assigned_to, Task.status, func.count(Task.id))
            .filter(Task.assigned_to.in_(employee_ids))
            .group_by(Task.assigned_to, Task.status)
            .all()
        )
        for employee_id, status, count in rows:
            stats[employee_id][status.value] = count
            stats[employee_id]["total"] += count
        return stats

    def list_employees(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Tuple[User, Dict[str, int]]]:
        """Employees newest first, each paired with counts of their tasks by status."""
        query = self._employee_query()

        if is_active is not None:
            query = query.filter(User.is_active == is_active)

        if search:
            pattern = like_pattern(search)
            query = query.filter(or_(
                User.name.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\")
            ))

        query = query.order_by(User.created_at.desc())
        employees = self.paginate_query(query, skip, limit).all()

        stats = self._task_stats_for([employee.id for employee in employees])
        return [(employee, stats[employee.id]) for employee in employees]

    def get_employee_detail(self, employee_id) -> Tuple[User, List[Task], Dict[str, int]]:
        employee = self.get_employee(employee_id)
        tasks = (
            self.db.query(Task)
            .filter(Task.assigned_to == employee.id)
            .order_by(Task.created_at.desc())
            .all()
        )
        return employee, tasks, count_by_status(task.status for task in tasks)

    def get_dashboard(self) -> Dict:
        employee_ids = select(User.id).where(User.role == UserRole.EMPLOYEE)

        total = self._employee_query().count()
        active = self._employee_query().filter(User.is_active.is_(True)).count()

        tasks = count_by_status([])
        status_rows = (
            self.db.query(Task.status, func.count(Task.id))
            .filter(Task.assigned_to.in_(employee_ids))
            .group_by(Task.status)
            .all()
        )
        for status, count in status_rows:
            tasks[status.value] = count
            tasks["total"] += count

        recent_tasks = (
            self.db.query(Task)
            .filter(Task.assigned_to.in_(employee_ids))
            .order_by(Task.created_at.desc())
            .limit(RECENT_TASKS_LIMIT)
            .all()
        )

        completed_count = func.count(Task.id).label("completed_count")
        performer_rows = (
            self.db.query(User.id, User.name, User.email, completed_count)
            .join(Task, Task.assigned_to == User.id)
            .filter(User.role == UserRole.EMPLOYEE, Task.status == TaskStatus.COMPLETED)
            .group_by(User.id, User.name, User.email)
            .order_by(completed_count.desc(), User.name)
            .limit(TOP_PERFORMERS_LIMIT)
            .all()
        )
        top_performers = [
            {"id": row.id, "name": row.name, "email": row.email, "completed_count": row.completed_count}
            for row in performer_rows
        ]

        return {
            "employees": {"total": total, "active": active},
            "tasks": tasks,
            "recent_tasks": recent_tasks,
            "top_performers": top_performers,
        }

    def create_employee(self, employee_data: EmployeeCreate) -> User:
        """Create an employee account on behalf of an admin."""
        user_data = UserCreate(
            name=employee_data.name,
            email=employee_data.email,
            password=employee_data.password
        )
        return AuthService(self.db, self.settings).create_user(user_data, role=UserRole.EMPLOYEE)

    def update_employee(self, employee_id, employee_data: EmployeeUpdate) -> User:
        employee = self.get_employee(employee_id)
        update_data = employee_data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in update_data:
            email = normalize_email(update_data["email"])
            if email != employee.email:
                self.check_unique_constraint(
                    User, "email", email, "User", exclude_id=employee.id,
                    detail="Email already registered"
                )
            employee.email = email
        if "name" in update_data:
            employee.name = update_data["name"].strip()
        if "is_active" in update_data:
            employee.is_active = update_data["is_active"]

        employee.updated_at = utcnow()
        self.safe_commit("Error updating employee")
        self.db.refresh(employee)

        self.log_service_action("update_employee", "User", str(employee.id), {"fields": sorted(update_data)})
        return employee

    def deactivate_employee(self, employee_id) -> User:
        """Soft delete. The account and its tasks stay in place."""
        employee = self.get_employee(employee_id)
        employee.is_active = False
        employee.updated_at = utcnow()
        self.safe_commit("Error deactivating employee")

        self.log_service_action("deactivate_employee", "User", str(employee.id))
        return employee

    def reset_employee_password(self, employee_id, new_password: str) -> None:
        employee = self.get_employee(employee_id)
        validate_password(new_password, self.settings.password_min_length, "new_password")

        employee.set_password(new_password, self.settings)
        employee.updated_at = utcnow()
        self.safe_commit("Error resetting password")

        self.log_service_action("admin_reset_password", "User", str(employee.id))
