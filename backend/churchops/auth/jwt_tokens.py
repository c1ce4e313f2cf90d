from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import jwt  # PyJWT

ACCESS_TOKEN_TYPE = "access"
CLOCK_SKEW_SECONDS = 30


class InvalidAccessToken(Exception):
    pass


@dataclass(frozen=True)
class JwtConfig:
    secret: str
    issuer: str
    audience: str
    ttl_seconds: int


def create_access_token(cfg: JwtConfig, profile_id: int, church_id: Optional[int] = None) -> str:
    issued = int(time.time())
    claims: dict[str, Any] = {
        "sub": str(profile_id),
        "typ": ACCESS_TOKEN_TYPE,
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "iat": issued,
        "exp": issued + cfg.ttl_seconds,
    }
    if church_id is not None:
        claims["church"] = church_id
    return jwt.encode(claims, cfg.secret, algorithm="HS256")


def decode_access_token(cfg: JwtConfig, token: str) -> dict[str, Any]:
    return jwt.decode(
        token,
        cfg.secret,
        algorithms=["HS256"],
        issuer=cfg.issuer,
        audience=cfg.audience,
        leeway=CLOCK_SKEW_SECONDS,
        options={"require": ["sub", "exp", "iat", "iss", "aud"]},
    )


def profile_id_from_token(cfg: JwtConfig, token: str) -> int:
    """Verified profile id carried by an access token, or InvalidAccessToken."""
    try:
        claims = decode_access_token(cfg, token)
    except jwt.PyJWTError as e:
        raise InvalidAccessToken(str(e)) from e

    if claims.get("typ", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise InvalidAccessToken("not an access token")
    try:
        return int(claims["sub"])
    except (TypeError, ValueError) as e:
        raise InvalidAccessToken("malformed subject") from e
