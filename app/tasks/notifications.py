"""
Task notification emails. Delivery failures are logged and never raised.

Inside a request the send is queued on the request's BackgroundTasks, so the
SMTP round trip runs in the threadpool after the response has gone out.
Without a queue (scripts, service-level tests) the send happens inline.
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks

from app.core.config import Settings, settings as default_settings
from app.core.email_service import EmailService
from app.core.email_templates import task_assigned_email, task_completed_email, task_failed_email

logger = logging.getLogger(__name__)


class TaskNotificationService:
    def __init__(
        self,
        email_service: EmailService,
        settings: Settings = default_settings,
        background_tasks: Optional[BackgroundTasks] = None
    ):
        self.email_service = email_service
        self.settings = settings
        self.background_tasks = background_tasks

    def _send(self, kind: str, to: str, content: dict) -> bool:
        try:
            self.email_service.send(to, content["subject"], content["html"], content["text"])
        except Exception as e:
            logger.error(f"Failed to send task {kind} email to {to}: {str(e)}")
            return False
        logger.info(f"Task {kind} email sent to {to}")
        return True

    def _dispatch(self, kind: str, to: str, content: dict) -> None:
        # Content is rendered by the caller while the task is still attached to its session
        if self.background_tasks is not None:
            self.background_tasks.add_task(self._send, kind, to, content)
        else:
            self._send(kind, to, content)

    def notify_task_assigned(self, task, employee, admin) -> None:
        content = task_assigned_email(employee.name, admin.name, task, self.settings.frontend_url)
        self._dispatch("assignment", employee.email, content)

    def notify_task_completed(self, task, employee, admin) -> None:
        content = task_completed_email(admin.name, employee.name, task, self.settings.frontend_url)
        self._dispatch("completion", admin.email, content)

    def notify_task_failed(self, task, employee, admin) -> None:
        content = task_failed_email(admin.name, employee.name, task, self.settings.frontend_url)
        self._dispatch("failure", admin.email, content)
