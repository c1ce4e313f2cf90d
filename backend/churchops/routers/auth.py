from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from churchops.auth.deps import get_current_profile
from churchops.core.config import settings
from churchops.models import Profile

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/session")
def session(profile: Profile = Depends(get_current_profile)):
    return {"data": {"profile_id": profile.id, "church_id": profile.church_id, "role": profile.role}}


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(response: Response):
    # sign-in happens in the identity provider; we only drop the cookie
    response.delete_cookie(
        key="access_token",
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        domain=settings.COOKIE_DOMAIN,
        path="/",
        httponly=True,
    )
    return
