import enum
from sqlalchemy import Column, String, Boolean, DateTime, Enum, Text, Uuid
from app.core.config import Settings, settings as default_settings
from app.core.database import Base, generate_uuid
from app.core.security import get_password_hash, verify_password


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(Text, nullable=False)
    role = Column(Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
                  nullable=False, default=UserRole.EMPLOYEE, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True))

    # sha256 of the outstanding reset token, never the token itself
    reset_password_token = Column(String(64), index=True)
    reset_password_expire = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def set_password(self, password: str, settings: Settings = default_settings) -> None:
        """Hash and store a new password. The only path that writes password_hash."""
        self.password_hash = get_password_hash(password, settings)

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    def clear_reset_token(self) -> None:
        self.reset_password_token = None
        self.reset_password_expire = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role.value if self.role else None})>"
