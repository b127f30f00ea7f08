"""
Auth Module - Dependencies
===========================
FastAPI dependencies that resolve the caller from a bearer token (or the
auth_token cookie). Credentials are validated by the identity service that
issued the token; here we only check the signature and that the user is active.

Routes receive the User; services receive plain `user_id` / admin-scope
arguments rather than inspecting roles themselves.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import AuthenticationError, AuthorizationError
from common.helpers import safe_int
from common.security import decode_token, extract_bearer
from modules.user.models import User


def get_current_active_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Identify the current user from the Authorization header or auth_token cookie.
    Returns User object or None.
    """
    token = extract_bearer(authorization) or request.cookies.get("auth_token")
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = safe_int(payload.get("sub"))
    if user_id is None:
        return None

    return db.query(User).filter(User.id == user_id, User.is_active == True).first()  # noqa: E712


def require_login(user: Optional[User] = Depends(get_current_active_user)) -> User:
    """Require any authenticated active user. Raises 401 if not logged in."""
    if not user:
        raise AuthenticationError()
    return user


def require_admin(user: User = Depends(require_login)) -> User:
    """Only allow admin users. Raises 403 otherwise."""
    if not user.is_admin:
        raise AuthorizationError()
    return user
