"""
Email bodies for password reset and task notifications.

Each builder returns a dict with "subject", "html" and "text".
"""

from datetime import datetime
from html import escape
from typing import Dict, Optional

PRIORITY_COLORS = {
    "low": "#10b981",
    "medium": "#f59e0b",
    "high": "#ef4444",
    "urgent": "#dc2626",
}


def _format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%a, %d %b %Y")


def _wrap(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><body style=\"font-family: Arial; background:#f9fafb; padding:20px;\">"
        "<div style=\"max-width:600px; margin:auto; background:#fff; padding:30px; border-radius:10px;\">"
        f"<h2 style=\"color:#4f46e5;\">{title}</h2>{body}</div></body></html>"
    )


def password_reset_email(user_name: str, reset_url: str, expire_minutes: int) -> Dict[str, str]:
    name = escape(user_name)
    url = escape(reset_url, quote=True)
    text = (
        f"Hello {user_name},\n\n"
        "You requested a password reset for your Employee Management System account.\n\n"
        f"Click the link below to reset your password:\n{reset_url}\n\n"
        f"This link will expire in {expire_minutes} minutes.\n\n"
        "If you didn't request this, please ignore this email. Your password will remain unchanged.\n\n"
        "Best regards,\nEmployee Management System Team"
    )
    html = _wrap(
        "Password Reset",
        f"<p>Hello <strong>{name}</strong>,</p>"
        "<p>You requested a password reset for your Employee Management System account. "
        "Click the button below to set a new password.</p>"
        f"<p><a href=\"{url}\" style=\"display:inline-block; padding:12px 32px; background:#10b981; "
        "color:#fff; text-decoration:none; border-radius:8px;\">Reset Password</a></p>"
        f"<p>This link will expire in <strong>{expire_minutes} minutes</strong>.</p>"
        "<p>If you didn't request this password reset, you can safely ignore this email.</p>"
        f"<p style=\"font-size:12px;\">Can't click the button? Copy and paste this link: {url}</p>"
    )
    return {
        "subject": "Password Reset Request - Employee Management System",
        "html": html,
        "text": text,
    }


def task_assigned_email(employee_name: str, admin_name: str, task, frontend_url: str) -> Dict[str, str]:
    priority = task.priority.value
    color = PRIORITY_COLORS.get(priority, "#3b82f6")
    due = _format_date(task.due_date)
    text = (
        f"Hi {employee_name},\n\n"
        f"{admin_name} assigned you a task.\n\n"
        f"Title: {task.title}\n"
        f"Description: {task.description}\n"
        f"Category: {task.category.value}\n"
        f"Priority: {priority}\n"
        f"Due: {due}\n\n"
        f"View it at {frontend_url}"
    )
    html = _wrap(
        "New Task Assigned",
        f"<p>Hi <strong>{escape(employee_name)}</strong>,</p>"
        f"<p><strong>{escape(admin_name)}</strong> assigned you a task.</p>"
        "<div style=\"background:#f3f4f6; padding:15px; border-radius:8px;\">"
        f"<p><strong>Title:</strong> {escape(task.title)}</p>"
        f"<p><strong>Description:</strong> {escape(task.description)}</p>"
        f"<p><strong>Category:</strong> {escape(task.category.value)}</p>"
        f"<p><strong>Priority:</strong> <span style=\"color:{color};\">{priority.upper()}</span></p>"
        f"<p><strong>Due:</strong> {due}</p></div>"
        f"<p><a href=\"{escape(frontend_url, quote=True)}\">Open dashboard</a></p>"
    )
    return {"subject": f"New Task Assigned: {task.title}", "html": html, "text": text}


def task_completed_email(admin_name: str, employee_name: str, task, frontend_url: str) -> Dict[str, str]:
    completed = _format_date(task.completed_at)
    text = (
        f"Hi {admin_name},\n\n"
        f"{employee_name} completed the task \"{task.title}\" ({task.category.value}) on {completed}.\n\n"
        f"View it at {frontend_url}"
    )
    html = _wrap(
        "Task Completed",
        f"<p>Hi <strong>{escape(admin_name)}</strong>,</p>"
        f"<p><strong>{escape(employee_name)}</strong> completed "
        f"<strong>{escape(task.title)}</strong> ({escape(task.category.value)}) on {completed}.</p>"
        f"<p><a href=\"{escape(frontend_url, quote=True)}\">Open dashboard</a></p>"
    )
    return {"subject": f"Task Completed: {task.title}", "html": html, "text": text}


def task_failed_email(admin_name: str, employee_name: str, task, frontend_url: str) -> Dict[str, str]:
    failed = _format_date(task.failed_at)
    text = (
        f"Hi {admin_name},\n\n"
        f"{employee_name} marked the task \"{task.title}\" ({task.category.value}) as failed on {failed}.\n"
        f"Reason: {task.failure_reason}\n\n"
        f"View it at {frontend_url}"
    )
    html = _wrap(
        "Task Failed",
        f"<p>Hi <strong>{escape(admin_name)}</strong>,</p>"
        f"<p><strong>{escape(employee_name)}</strong> marked "
        f"<strong>{escape(task.title)}</strong> ({escape(task.category.value)}) as failed on {failed}.</p>"
        f"<p><strong>Reason:</strong> {escape(task.failure_reason or '')}</p>"
        f"<p><a href=\"{escape(frontend_url, quote=True)}\">Open dashboard</a></p>"
    )
    return {"subject": f"Task Failed: {task.title}", "html": html, "text": text}
