from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from churchops.auth.deps import get_current_profile
from churchops.auth.guards import check_feature
from churchops.core.db import get_db
from churchops.core.errors import NotFound
from churchops.models import Event, EventAssignment, EventPosition, Profile
from churchops.services.responses import respond_to_invitation

router = APIRouter(prefix="/assignments", tags=["assignments"])


class RespondIn(BaseModel):
    response: Literal["accepted", "declined"]


@router.delete("/{assignment_id}")
def remove_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "manageEventContent")

    a = db.execute(
        select(EventAssignment)
        .join(EventPosition, EventPosition.id == EventAssignment.position_id)
        .join(Event, Event.id == EventPosition.event_id)
        .where(EventAssignment.id == assignment_id, Event.church_id == profile.church_id)
    ).scalar_one_or_none()
    if a is None:
        raise NotFound("Assignment not found")

    db.delete(a)
    db.commit()
    return {"success": True}


@router.post("/{assignment_id}/respond")
def respond(
    assignment_id: int,
    payload: RespondIn,
    tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return respond_to_invitation(
        db,
        profile=profile,
        assignment_id=assignment_id,
        response=payload.response,
        tasks=tasks,
    )
