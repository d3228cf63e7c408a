"""
Credential store: password hashing and password-reset tokens.

Only the sha256 of a reset token is persisted; the plaintext token is
returned once for out-of-band delivery. A user holds at most one active
token, so issuing a new one replaces the previous hash.
"""

from datetime import datetime, timedelta
from typing import Optional

from app.auth.models import User
from app.core.clock import utcnow
from app.core.security import (
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    verify_password,
)
from app.core.service_base import BaseService


class CredentialService(BaseService):

    def hash_password(self, password: str) -> str:
        return get_password_hash(password, self.settings)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return verify_password(password, password_hash)

    def issue_reset_token(self, user: User, now: Optional[datetime] = None) -> str:
        """Store a fresh token hash and expiry on the user; return the plaintext token."""
        now = now or utcnow()
        token = generate_reset_token()
        user.reset_password_token = hash_reset_token(token)
        user.reset_password_expire = now + timedelta(minutes=self.settings.reset_token_expire_minutes)
        user.updated_at = now
        self.safe_commit("Error issuing reset token")

        self.log_service_action("issue_reset_token", "User", str(user.id))
        return token

    def consume_reset_token(self, token: str, now: Optional[datetime] = None) -> Optional[User]:
        """Return the user owning an unexpired token, else None.

        Read-only: the caller clears the token once the reset has succeeded.
        """
        if not token:
            return None
        now = now or utcnow()
        return self.db.query(User).filter(
            User.reset_password_token == hash_reset_token(token),
            User.reset_password_expire > now,
        ).first()

    def clear_reset_token(self, user: User) -> None:
        user.clear_reset_token()
        user.updated_at = utcnow()
        self.safe_commit("Error clearing reset token")
