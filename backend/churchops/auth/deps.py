from __future__ import annotations

from fastapi import Cookie, Depends
from sqlalchemy.orm import Session

from churchops.auth.jwt_tokens import InvalidAccessToken, JwtConfig, profile_id_from_token
from churchops.core.config import settings
from churchops.core.db import get_db
from churchops.core.errors import AuthError
from churchops.models import Profile


def get_jwt_config() -> JwtConfig:
    return JwtConfig(
        secret=settings.JWT_SECRET,
        issuer=settings.JWT_ISS,
        audience=settings.JWT_AUD,
        ttl_seconds=settings.ACCESS_TOKEN_TTL_SECONDS,
    )


def get_current_profile(
    db: Session = Depends(get_db),
    access_token: str | None = Cookie(default=None, alias="access_token"),
) -> Profile:
    if not access_token:
        raise AuthError("Not authenticated")

    try:
        profile_id = profile_id_from_token(get_jwt_config(), access_token)
    except InvalidAccessToken:
        raise AuthError("Invalid token")

    profile = db.query(Profile).filter(Profile.id == profile_id).one_or_none()
    if not profile:
        raise AuthError("Profile not found")

    return profile
