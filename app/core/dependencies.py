"""
Authentication and authorization dependencies.

The authenticated User is the request principal: it is returned by
get_current_user and also attached to request.state.user.
"""

import uuid
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.auth.models import User, UserRole
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.exceptions import (
    AuthenticationError,
    InsufficientPermissionsError,
    InvalidTokenError,
)
from app.core.redis_service import TokenBlocklist, get_token_blocklist
from app.core.security import verify_token

# Security scheme; missing headers are reported by get_current_user, not here
security = HTTPBearer(auto_error=False)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials], cookie_name: str) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(cookie_name) or None


def get_token_payload(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    blocklist: TokenBlocklist = Depends(get_token_blocklist),
) -> dict:
    """Verified payload of the presented session token."""
    token = extract_token(request, credentials, settings.session_cookie_name)
    if not token:
        raise AuthenticationError("Not authorized to access this route")

    payload = verify_token(token, settings)

    if blocklist.is_revoked(payload.get("jti")):
        raise InvalidTokenError("Token has been revoked")

    return payload


def get_current_user(
    request: Request,
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    user = db.get(User, uuid.UUID(payload["sub"]))

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    request.state.user = user
    return user


def require_role(principal: User, role: UserRole) -> None:
    """Exact role match; admin does not implicitly satisfy employee."""
    if principal.role != role:
        raise InsufficientPermissionsError(
            f"Role '{principal.role.value}' is not authorized to access this route"
        )


def require_owner_or_admin(principal: User, resource_owner_id: Any, detail: str = "Not authorized to access this resource") -> None:
    if principal.is_admin:
        return
    if str(principal.id) != str(resource_owner_id):
        raise InsufficientPermissionsError(detail)


def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current authenticated admin user."""
    require_role(current_user, UserRole.ADMIN)
    return current_user
