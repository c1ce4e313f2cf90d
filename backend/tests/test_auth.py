"""
Tests for session resolution, feature gates and error rendering.
"""

import jwt
import pytest
from fastapi.testclient import TestClient

from churchops.auth.deps import get_jwt_config
from churchops.auth.jwt_tokens import (
    InvalidAccessToken,
    JwtConfig,
    create_access_token,
    decode_access_token,
    profile_id_from_token,
)
from churchops.core.roles import has_feature
from churchops.main import app
from churchops.services.relations import unwrap_relation


class TestTokens:
    def test_roundtrip_carries_profile_id(self):
        cfg = get_jwt_config()
        payload = decode_access_token(cfg, create_access_token(cfg, 42))
        assert payload["sub"] == "42"

    def test_church_claim_is_optional(self):
        cfg = get_jwt_config()
        assert decode_access_token(cfg, create_access_token(cfg, 7, 3))["church"] == 3
        assert "church" not in decode_access_token(cfg, create_access_token(cfg, 7))

    def test_refresh_style_token_is_not_an_access_token(self):
        cfg = get_jwt_config()
        claims = decode_access_token(cfg, create_access_token(cfg, 7))
        claims["typ"] = "refresh"
        token = jwt.encode(claims, cfg.secret, algorithm="HS256")
        with pytest.raises(InvalidAccessToken):
            profile_id_from_token(cfg, token)

    def test_wrong_secret_is_rejected(self, world):
        cfg = get_jwt_config()
        forged = create_access_token(
            JwtConfig(secret="other", issuer=cfg.issuer, audience=cfg.audience, ttl_seconds=60), world.owner.id
        )
        with TestClient(app) as c:
            c.cookies.set("access_token", forged)
            r = c.get("/me")
        assert r.status_code == 401

    def test_unknown_profile(self, world):
        with TestClient(app) as c:
            c.cookies.set("access_token", create_access_token(get_jwt_config(), 9999))
            r = c.get("/me")
        assert r.status_code == 401
        assert r.json() == {"error": "Profile not found"}

    def test_session_and_logout(self, world, client_for):
        c = client_for(world.owner)
        assert c.get("/auth/session").json()["data"]["role"] == "owner"
        assert c.post("/auth/logout").status_code == 204


class TestFeatures:
    @pytest.mark.parametrize(
        "role, code, allowed",
        [
            ("owner", "deleteEvent", True),
            ("admin", "deleteEvent", True),
            ("leader", "deleteEvent", False),
            ("leader", "sendInvitations", True),
            ("volunteer", "sendInvitations", False),
            ("volunteer", "viewEvents", True),
            ("member", "viewEvents", False),
            (None, "viewEvents", False),
            ("owner", "noSuchFeature", False),
        ],
    )
    def test_has_feature(self, role, code, allowed):
        assert has_feature(role, code) is allowed


class TestUnwrapRelation:
    @pytest.mark.parametrize(
        "value, expected",
        [(None, None), ([], None), (["a", "b"], "a"), (("x",), "x"), ("solo", "solo")],
    )
    def test_unwrap(self, value, expected):
        assert unwrap_relation(value) == expected


def test_health():
    with TestClient(app) as c:
        assert c.get("/health").json() == {"status": "ok"}
