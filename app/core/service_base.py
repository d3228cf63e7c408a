"""
Base Service Class with Enhanced Error Handling
"""

import logging
import uuid
from typing import Optional, Any, Dict
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    DatabaseError,
    ResourceNotFoundError,
    ResourceAlreadyExistsError,
    ValidationError,
    integrity_error_to_api_error
)

logger = logging.getLogger(__name__)


class BaseService:
    """Base service class with common error handling patterns."""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings

    def safe_commit(self, error_message: str = "Database operation failed") -> bool:
        """Safely commit database transaction with error handling."""
        try:
            self.db.commit()
            return True
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error during commit: {str(e)}")
            raise integrity_error_to_api_error(e)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during commit: {str(e)}")
            raise DatabaseError(detail=error_message)

    def get_or_404(self, model_class, resource_id: Any, resource_type: str = None):
        """Get resource by ID or raise 404 error. Malformed ids count as missing."""
        resource_type = resource_type or model_class.__name__
        try:
            resource_uuid = resource_id if isinstance(resource_id, uuid.UUID) else uuid.UUID(str(resource_id))
        except (ValueError, TypeError):
            raise ResourceNotFoundError(resource_type=resource_type, resource_id=str(resource_id))

        try:
            resource = self.db.get(model_class, resource_uuid)
        except SQLAlchemyError as e:
            logger.error(f"Database error in get_or_404: {str(e)}")
            raise DatabaseError(
                detail=f"Error retrieving {resource_type}",
                error_data={"resource_id": str(resource_id)}
            )

        if not resource:
            raise ResourceNotFoundError(resource_type=resource_type, resource_id=str(resource_id))

        return resource

    def check_unique_constraint(
        self,
        model_class,
        field_name: str,
        field_value: Any,
        resource_type: str = None,
        exclude_id: Optional[uuid.UUID] = None,
        detail: str = None
    ):
        """Check if a field value is unique."""
        try:
            query = self.db.query(model_class).filter(
                getattr(model_class, field_name) == field_value
            )

            # Exclude current record if updating
            if exclude_id:
                query = query.filter(model_class.id != exclude_id)

            existing = query.first()
        except SQLAlchemyError as e:
            logger.error(f"Database error in unique constraint check: {str(e)}")
            raise DatabaseError(
                detail=f"Error checking uniqueness for {field_name}",
                error_data={"field": field_name}
            )

        if existing:
            error = ResourceAlreadyExistsError(
                resource_type=resource_type or model_class.__name__,
                field=field_name,
                value=str(field_value)
            )
            if detail:
                error.detail = detail
            raise error

    def paginate_query(self, query, skip: int = 0, limit: int = 100):
        """Apply pagination to query with validation."""
        if skip < 0:
            raise ValidationError(
                detail="Skip parameter cannot be negative",
                field="skip",
                value=skip
            )

        if limit <= 0 or limit > 1000:
            raise ValidationError(
                detail="Limit parameter must be between 1 and 1000",
                field="limit",
                value=limit
            )

        return query.offset(skip).limit(limit)

    def log_service_action(
        self,
        action: str,
        resource_type: str = None,
        resource_id: str = None,
        extra_data: Dict[str, Any] = None
    ):
        """Log service actions for auditing."""
        log_data = {
            "action": action,
            "service": self.__class__.__name__
        }

        if resource_type:
            log_data["resource_type"] = resource_type
        if resource_id:
            log_data["resource_id"] = resource_id
        if extra_data:
            log_data.update(extra_data)

        logger.info(f"Service action: {action}", extra={"audit": log_data})


def like_pattern(search: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped (escape char "\\")."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
