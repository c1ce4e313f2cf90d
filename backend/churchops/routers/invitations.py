from __future__ import annotations

from datetime import date
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from churchops.auth.deps import get_current_profile
from churchops.auth.guards import check_feature
from churchops.core.config import settings
from churchops.core.db import get_db
from churchops.models import Profile
from churchops.services.invitation_counts import get_matrix_pending_invitation_counts
from churchops.services.invitations import send_bulk_invitations
from churchops.services.responses import TokenResponseError, respond_by_token

router = APIRouter(tags=["invitations"])


class SendBulkInvitationsIn(BaseModel):
    event_ids: List[int] = Field(default_factory=list)
    scope: str = Field(..., description="all|dates|events|ministries|positions")
    selected_dates: Optional[List[date]] = None
    selected_event_ids: Optional[List[int]] = None
    selected_ministry_ids: Optional[List[int]] = None
    selected_position_ids: Optional[List[int]] = None


class PendingCountsIn(BaseModel):
    event_ids: List[int] = Field(default_factory=list)


def _site_redirect(path: str, params: dict | None = None) -> RedirectResponse:
    url = f"{settings.SITE_URL.rstrip('/')}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url, status_code=303)


@router.post("/invitations/bulk")
def invite_bulk(
    payload: SendBulkInvitationsIn,
    tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "sendInvitations")
    result = send_bulk_invitations(
        db,
        church_id=profile.church_id,
        event_ids=payload.event_ids,
        scope=payload.scope,
        tasks=tasks,
        selected_dates=payload.selected_dates,
        selected_event_ids=payload.selected_event_ids,
        selected_ministry_ids=payload.selected_ministry_ids,
        selected_position_ids=payload.selected_position_ids,
    )
    return {"success": True, **result}


@router.post("/invitations/pending-counts")
def matrix_pending_counts(
    payload: PendingCountsIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "sendInvitations")
    return {
        "data": get_matrix_pending_invitation_counts(
            db, church_id=profile.church_id, event_ids=payload.event_ids
        )
    }


@router.get("/api/invitation/respond")
def respond_from_email(
    tasks: BackgroundTasks,
    token: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Accept/decline link target. No session: the email token authorizes."""
    try:
        result = respond_by_token(db, token=token, action=action, tasks=tasks)
    except TokenResponseError as e:
        if e.reason == "expired":
            return _site_redirect("/invitation/expired")
        if e.reason == "already_responded":
            return _site_redirect("/invitation/already-responded", {"previous": e.previous})
        return _site_redirect("/invitation/error", {"reason": e.reason})

    return _site_redirect(
        "/invitation/success",
        {
            "action": result["response"],
            "event": result["event_title"],
            "position": result["position_title"],
        },
    )
