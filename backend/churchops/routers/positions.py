from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from churchops.auth.deps import get_current_profile
from churchops.auth.guards import check_feature
from churchops.core.db import get_db
from churchops.core.errors import AlreadyAssigned, NotFound
from churchops.models import Event, EventAssignment, EventPosition, Profile
from churchops.routers.events import position_out, validate_position_refs
from churchops.services.eligibility import get_eligible_volunteers

log = logging.getLogger("churchops.positions")

router = APIRouter(prefix="/positions", tags=["positions"])


class PositionUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    ministry_id: int | None = Field(default=None, gt=0)
    role_id: int | None = Field(default=None, gt=0)
    quantity_needed: int | None = Field(default=None, ge=1)
    notes: str | None = Field(default=None, max_length=2000)
    sort_order: int | None = None


class AssignmentCreateIn(BaseModel):
    profile_id: int = Field(..., gt=0)
    notes: Optional[str] = Field(default=None, max_length=2000)


def _get_position(db: Session, *, position_id: int, church_id: int) -> EventPosition:
    pos = db.execute(
        select(EventPosition)
        .join(Event, Event.id == EventPosition.event_id)
        .where(EventPosition.id == position_id, Event.church_id == church_id)
    ).scalar_one_or_none()
    if pos is None:
        raise NotFound("Position not found")
    return pos


@router.get("/{position_id}/eligible-volunteers")
def eligible_volunteers(
    position_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "viewEvents")
    return {"data": get_eligible_volunteers(db, position_id=position_id, church_id=profile.church_id)}


@router.patch("/{position_id}")
def update_position(
    position_id: int,
    payload: PositionUpdateIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "manageEventContent")
    pos = _get_position(db, position_id=position_id, church_id=profile.church_id)

    data = payload.model_dump(exclude_unset=True)
    ministry_id = data.get("ministry_id") or pos.ministry_id
    role_id = data["role_id"] if "role_id" in data else pos.role_id
    validate_position_refs(db, church_id=profile.church_id, ministry_id=ministry_id, role_id=role_id)

    if data.get("title") is not None:
        pos.title = data["title"].strip()
    if data.get("ministry_id") is not None:
        pos.ministry_id = data["ministry_id"]
    if "role_id" in data:
        pos.role_id = data["role_id"]
    if data.get("quantity_needed") is not None:
        pos.quantity_needed = data["quantity_needed"]
    if "notes" in data:
        pos.notes = data["notes"]
    if data.get("sort_order") is not None:
        pos.sort_order = data["sort_order"]

    db.commit()
    db.refresh(pos)
    return {"data": position_out(pos)}


@router.delete("/{position_id}")
def delete_position(
    position_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "manageEventContent")
    pos = _get_position(db, position_id=position_id, church_id=profile.church_id)
    db.delete(pos)
    db.commit()
    return {"success": True}


@router.post("/{position_id}/assignments")
def assign_volunteer(
    position_id: int,
    payload: AssignmentCreateIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "manageEventContent")
    _get_position(db, position_id=position_id, church_id=profile.church_id)

    person = db.execute(
        select(Profile).where(Profile.id == payload.profile_id, Profile.church_id == profile.church_id)
    ).scalar_one_or_none()
    if person is None:
        raise NotFound("Person not found")

    a = EventAssignment(
        position_id=position_id,
        profile_id=person.id,
        assigned_by=profile.id,
        notes=payload.notes,
    )
    db.add(a)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyAssigned()
    db.refresh(a)

    log.info("assigned profile=%s position=%s by=%s", person.id, position_id, profile.id)
    return {
        "data": {
            "id": a.id,
            "position_id": a.position_id,
            "profile_id": a.profile_id,
            "status": a.status,
            "notes": a.notes,
        }
    }
