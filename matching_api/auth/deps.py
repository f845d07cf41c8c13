from __future__ import annotations

import uuid
from typing import Annotated, Callable

import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from matching_api.auth.jwt import verify_access_token
from matching_api.core.config import settings
from matching_api.db import get_db
from matching_api.models import User
from matching_api.models.user import UserRole

logger = structlog.get_logger(__name__)

DBSession = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _dev_user(db: Session, token: str) -> User:
    prefix = settings.dev_auth_prefix
    if not token.startswith(prefix):
        raise _unauthorized(f"invalid dev token (expected prefix {prefix})")

    email = token.removeprefix(prefix).strip().lower()
    if "@" not in email:
        raise _unauthorized("invalid email in token")

    user = db.scalar(select(User).where(User.email == email))
    if not user:
        user = User(email=email, name=None)
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def _jwt_user(db: Session, token: str) -> User:
    try:
        claims = verify_access_token(token)
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        raise _unauthorized("invalid access token") from None

    user = db.get(User, user_id)
    if not user:
        raise _unauthorized("unknown user")
    return user


def get_current_user(request: Request, db: DBSession) -> User:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise _unauthorized("missing bearer token")

    token = auth.removeprefix("Bearer ").strip()

    # Local dev auth only
    if settings.auth_mode == "dev" and settings.env == "local":
        user = _dev_user(db, token)
    elif settings.auth_mode == "jwt":
        user = _jwt_user(db, token)
    else:
        raise _unauthorized("auth not configured")

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_role(*roles: UserRole) -> Callable[[User], User]:
    allowed = {role.value for role in roles}

    def _check(user: CurrentUser) -> User:
        if user.role not in allowed:
            logger.info("role_denied", role=user.role, required=sorted(allowed))
            raise HTTPException(status_code=403, detail="forbidden")
        return user

    return _check
