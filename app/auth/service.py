from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.auth.models import User, UserRole
from app.auth.schemas import ChangePasswordRequest, ProfileUpdate, UserCreate, UserLogin
from app.core.clock import utcnow
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.redis_service import TokenBlocklist
from app.core.security import create_access_token
from app.core.service_base import BaseService
from app.core.validators import normalize_email, validate_password


class AuthService(BaseService):
    def __init__(self, db: Session, settings: Settings = default_settings):
        super().__init__(db, settings)

    def create_user(self, user_data: UserCreate, role: UserRole = UserRole.EMPLOYEE) -> User:
        """Create a new user with hashed password."""
        email = normalize_email(user_data.email)
        validate_password(user_data.password, self.settings.password_min_length)

        self.check_unique_constraint(
            User, "email", email, "User",
            detail="User with this email already exists"
        )

        now = utcnow()
        db_user = User(
            name=user_data.name.strip(),
            email=email,
            role=role,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        db_user.set_password(user_data.password, self.settings)

        self.db.add(db_user)
        self.safe_commit("Error creating user")
        self.db.refresh(db_user)

        self.log_service_action("create_user", "User", str(db_user.id), {"role": role.value})
        return db_user

    def register(self, user_data: UserCreate) -> Tuple[User, str]:
        """Self-registration always yields an employee account."""
        user = self.create_user(user_data, role=UserRole.EMPLOYEE)
        return user, self.create_token(user)

    def authenticate_user(self, login_data: UserLogin) -> User:
        """Authenticate user with email and password."""
        email = normalize_email(login_data.email)
        user = self.get_user_by_email(email)

        if not user:
            self.log_service_action("failed_login_attempt", extra_data={"email": email, "reason": "user_not_found"})
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            self.log_service_action("failed_login_attempt", extra_data={"email": email, "reason": "user_inactive"})
            raise AuthenticationError("Your account has been deactivated")

        if not user.check_password(login_data.password):
            self.log_service_action("failed_login_attempt", extra_data={"email": email, "reason": "invalid_password"})
            raise AuthenticationError("Invalid credentials")

        # last_login only, password_hash untouched
        user.last_login = utcnow()
        self.safe_commit("Error updating last login")
        self.db.refresh(user)

        self.log_service_action("successful_login", "User", str(user.id))
        return user

    def login(self, login_data: UserLogin) -> Tuple[User, str]:
        user = self.authenticate_user(login_data)
        return user, self.create_token(user)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def create_token(self, user: User) -> str:
        return create_access_token(str(user.id), user.email, user.role.value, self.settings)

    def update_profile(self, user: User, profile: ProfileUpdate) -> User:
        if profile.name:
            user.name = profile.name.strip()
        if profile.email:
            email = normalize_email(profile.email)
            if email != user.email:
                self.check_unique_constraint(
                    User, "email", email, "User", exclude_id=user.id,
                    detail="Email already registered"
                )
                user.email = email

        user.updated_at = utcnow()
        self.safe_commit("Error updating profile")
        self.db.refresh(user)

        self.log_service_action("update_profile", "User", str(user.id))
        return user

    def change_password(self, user: User, request: ChangePasswordRequest) -> str:
        """Change password after checking the current one; returns a fresh token."""
        if not user.check_password(request.current_password):
            raise ValidationError("Current password is incorrect", field="current_password")

        validate_password(request.new_password, self.settings.password_min_length, "new_password")

        user.set_password(request.new_password, self.settings)
        user.updated_at = utcnow()
        self.safe_commit("Error changing password")

        self.log_service_action("change_password", "User", str(user.id))
        return self.create_token(user)

    def logout(self, user: User, token_payload: dict, blocklist: TokenBlocklist) -> bool:
        """Revoke the presented token when a blocklist is available.

        Returns True if the token was denylisted server-side.
        """
        expires_at = datetime.fromtimestamp(token_payload["exp"], tz=timezone.utc)
        ttl = int((expires_at - utcnow()).total_seconds())
        revoked = blocklist.revoke(token_payload.get("jti"), ttl)

        self.log_service_action("logout", "User", str(user.id), {"server_side_revocation": revoked})
        return revoked
