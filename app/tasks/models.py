import enum
import math
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Index, Uuid
from sqlalchemy.orm import relationship
from app.auth.models import User
from app.core.clock import as_utc, utcnow
from app.core.database import Base, generate_uuid


def _enum_values(enum_class):
    return [member.value for member in enum_class]


class TaskStatus(str, enum.Enum):
    NEW = "new"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskCategory(str, enum.Enum):
    FRONTEND = "Frontend"
    BACKEND = "Backend"
    DATABASE = "Database"
    DEVOPS = "DevOps"
    TESTING = "Testing"
    BUG_FIX = "Bug Fix"
    FEATURE = "Feature"
    DOCUMENTATION = "Documentation"
    OTHER = "Other"


TERMINAL_STATUSES = (TaskStatus.COMPLETED, TaskStatus.FAILED)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
FAILURE_REASON_MAX_LENGTH = 200
NOTES_MAX_LENGTH = 500


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=False)
    category = Column(Enum(TaskCategory, values_callable=_enum_values), nullable=False)
    status = Column(Enum(TaskStatus, values_callable=_enum_values), nullable=False, default=TaskStatus.NEW, index=True)
    priority = Column(Enum(TaskPriority, values_callable=_enum_values), nullable=False, default=TaskPriority.MEDIUM)
    assigned_to = Column(Uuid, ForeignKey("users.id"), nullable=False)
    assigned_by = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    due_date = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    failed_at = Column(DateTime(timezone=True))
    failure_reason = Column(String(FAILURE_REASON_MAX_LENGTH))
    notes = Column(String(NOTES_MAX_LENGTH))
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    assignee = relationship(User, foreign_keys=[assigned_to], lazy="joined")
    assigner = relationship(User, foreign_keys=[assigned_by], lazy="joined")

    __table_args__ = (
        Index("ix_tasks_assigned_to_status", "assigned_to", "status"),
    )

    @property
    def is_overdue(self) -> bool:
        if self.status in TERMINAL_STATUSES:
            return False
        return utcnow() > as_utc(self.due_date)

    @property
    def age_in_days(self) -> int:
        elapsed = abs((utcnow() - as_utc(self.created_at)).total_seconds())
        return math.ceil(elapsed / 86400)
