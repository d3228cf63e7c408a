"""
Validation Utilities for the Employee Task Manager
"""

from typing import Optional

from app.core.exceptions import ValidationError


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively, so they are stored lower-cased."""
    if not email or not isinstance(email, str):
        raise ValidationError(
            detail="Email is required",
            field="email",
            value=email
        )
    return email.strip().lower()


def validate_password(password: str, min_length: int = 6, field_name: str = "password") -> str:
    """Validate password length."""
    if not password or not isinstance(password, str):
        raise ValidationError(
            detail="Password is required",
            field=field_name
        )

    if len(password) < min_length:
        raise ValidationError(
            detail=f"Password must be at least {min_length} characters",
            field=field_name,
            error_data={"min_length": min_length}
        )

    return password


def validate_max_length(value: Optional[str], max_length: int, field_name: str, label: str = None) -> Optional[str]:
    if value is not None and len(value) > max_length:
        raise ValidationError(
            detail=f"{label or field_name.capitalize()} cannot exceed {max_length} characters",
            field=field_name,
            error_data={"max_length": max_length, "actual_length": len(value)}
        )
    return value


def validate_required_text(value: Optional[str], field_name: str, detail: str) -> str:
    """Reject missing or whitespace-only text and return it stripped."""
    if value is None or not value.strip():
        raise ValidationError(detail=detail, field=field_name)
    return value.strip()


def mask_email(email: str) -> str:
    """Hide most of the local part: "jane.doe@example.com" -> "ja***@example.com"."""
    local, _, domain = email.partition("@")
    visible = local[:2] if len(local) > 2 else local[:1]
    return f"{visible}***@{domain}"
