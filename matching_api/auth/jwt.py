from __future__ import annotations

import jwt
from jwt import PyJWTError

from matching_api.core.config import settings


def verify_access_token(token: str) -> dict:
    """Verify a provider-issued access token and return its claims."""
    if not settings.jwt_secret:
        raise ValueError("JWT_SECRET is not configured")
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except PyJWTError as exc:
        raise ValueError("invalid access token") from exc
