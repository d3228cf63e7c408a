"""
Password reset flow: forgot-password, token pre-validation and redemption.

Per user the flow moves NoActiveToken -> TokenIssued -> (Consumed | Expired)
-> NoActiveToken. Responses never reveal whether an email is registered.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.auth.credentials import CredentialService
from app.auth.models import User
from app.core.clock import utcnow
from app.core.config import Settings, settings as default_settings
from app.core.email_service import EmailService
from app.core.email_templates import password_reset_email
from app.core.exceptions import EmailDeliveryError, InvalidResetTokenError
from app.core.security import create_access_token
from app.core.validators import mask_email, normalize_email, validate_password

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent"


class PasswordResetService(CredentialService):
    def __init__(self, db: Session, email_service: EmailService, settings: Settings = default_settings):
        super().__init__(db, settings)
        self.email_service = email_service

    def build_reset_url(self, token: str) -> str:
        return f"{self.settings.frontend_url.rstrip('/')}/reset-password/{token}"

    def request_reset(self, email: str) -> str:
        """Issue and email a reset token if the account exists and is active.

        Returns the same generic message either way. If the email cannot be
        sent, the freshly issued token is cleared and EmailDeliveryError is raised.
        """
        user = self.db.query(User).filter(User.email == normalize_email(email)).first()

        if not user or not user.is_active:
            self.log_service_action("password_reset_requested", extra_data={"issued": False})
            return RESET_REQUESTED_MESSAGE

        token = self.issue_reset_token(user)
        content = password_reset_email(
            user.name,
            self.build_reset_url(token),
            self.settings.reset_token_expire_minutes
        )

        try:
            self.email_service.send(user.email, content["subject"], content["html"], content["text"])
        except Exception as e:
            logger.error(f"Password reset email failed for user {user.id}: {str(e)}")
            self.clear_reset_token(user)
            raise EmailDeliveryError("Email could not be sent. Please try again later.")

        self.log_service_action("password_reset_requested", "User", str(user.id), {"issued": True})
        return RESET_REQUESTED_MESSAGE

    def verify_reset_token(self, token: str) -> str:
        """Read-only check; returns the owner's masked email."""
        user = self.consume_reset_token(token)
        if not user:
            raise InvalidResetTokenError()
        return mask_email(user.email)

    def complete_reset(self, token: str, new_password: str) -> Tuple[User, str]:
        """Set a new password from a valid token and log the user in.

        The password is checked before the token is looked up, so a rejected
        password leaves the token usable.
        """
        validate_password(new_password, self.settings.password_min_length)

        user: Optional[User] = self.consume_reset_token(token)
        if not user:
            raise InvalidResetTokenError()

        user.set_password(new_password, self.settings)
        user.clear_reset_token()
        user.updated_at = utcnow()
        self.safe_commit("Error resetting password")
        self.db.refresh(user)

        self.log_service_action("password_reset_completed", "User", str(user.id))
        session_token = create_access_token(str(user.id), user.email, user.role.value, self.settings)
        return user, session_token
