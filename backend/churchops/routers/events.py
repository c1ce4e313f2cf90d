from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from churchops.auth.deps import get_current_profile
from churchops.auth.guards import check_feature
from churchops.core.clock import as_utc
from churchops.core.db import get_db
from churchops.core.errors import NotFound, ValidationError
from churchops.models import (
    Event,
    EventAssignment,
    EventPosition,
    EventStatus,
    Ministry,
    MinistryRole,
    Profile,
)
from churchops.services import calendar_sync
from churchops.services.invitation_counts import get_pending_invitation_counts
from churchops.services.invitations import send_invitations
from churchops.services.notifications import best_effort

log = logging.getLogger("churchops.events")

router = APIRouter(prefix="/events", tags=["events"])


# ---------- Schemas ----------

class EventCreateIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    start_time: datetime
    end_time: datetime
    status: EventStatus = EventStatus.DRAFT
    responsible_person_id: Optional[int] = Field(default=None, gt=0)


class EventUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: EventStatus | None = None
    responsible_person_id: int | None = Field(default=None, gt=0)


class PositionCreateIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    ministry_id: int = Field(..., gt=0)
    role_id: Optional[int] = Field(default=None, gt=0)
    quantity_needed: int = Field(1, ge=1)
    notes: Optional[str] = Field(default=None, max_length=2000)
    sort_order: Optional[int] = None


class SendInvitationsIn(BaseModel):
    scope: str = Field(..., description="all|ministry|positions")
    ministry_id: Optional[int] = None
    position_ids: Optional[List[int]] = None


# ---------- Helpers ----------

def _get_event(db: Session, *, event_id: int, church_id: int) -> Event:
    event = db.execute(
        select(Event).where(Event.id == event_id, Event.church_id == church_id)
    ).scalar_one_or_none()
    if event is None:
        raise NotFound("Event not found")
    return event


def _require_church_profile(db: Session, *, profile_id: int | None, church_id: int) -> None:
    if profile_id is None:
        return
    p = db.execute(
        select(Profile.id).where(Profile.id == profile_id, Profile.church_id == church_id)
    ).scalar_one_or_none()
    if p is None:
        raise NotFound("Person not found")


def _check_times(start: datetime, end: datetime) -> None:
    if as_utc(end) < as_utc(start):
        raise ValidationError("End time must be after start time")


def _event_out(e: Event) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "start_time": as_utc(e.start_time),
        "end_time": as_utc(e.end_time),
        "status": e.status,
        "responsible_person_id": e.responsible_person_id,
        "created_by": e.created_by,
    }


def _assignment_out(a: EventAssignment) -> dict:
    p = a.profile
    return {
        "id": a.id,
        "profile": {"id": p.id, "first_name": p.first_name, "last_name": p.last_name, "email": p.email}
        if p
        else None,
        "status": a.status,
        "notes": a.notes,
        "invited_at": as_utc(a.invited_at),
        "responded_at": as_utc(a.responded_at),
    }


def position_out(pos: EventPosition, *, with_assignments: bool = False) -> dict:
    out = {
        "id": pos.id,
        "event_id": pos.event_id,
        "title": pos.title,
        "ministry": {"id": pos.ministry.id, "name": pos.ministry.name, "color": pos.ministry.color}
        if pos.ministry
        else None,
        "role": {"id": pos.role.id, "name": pos.role.name} if pos.role else None,
        "quantity_needed": pos.quantity_needed,
        "notes": pos.notes,
        "sort_order": pos.sort_order,
    }
    if with_assignments:
        out["assignments"] = [_assignment_out(a) for a in pos.assignments]
    return out


def validate_position_refs(db: Session, *, church_id: int, ministry_id: int | None, role_id: int | None) -> None:
    if ministry_id is not None:
        m = db.execute(
            select(Ministry.id).where(Ministry.id == ministry_id, Ministry.church_id == church_id)
        ).scalar_one_or_none()
        if m is None:
            raise NotFound("Ministry not found")
    if role_id is not None:
        r = db.execute(select(MinistryRole).where(MinistryRole.id == role_id)).scalar_one_or_none()
        if r is None or (ministry_id is not None and r.ministry_id != ministry_id):
            raise ValidationError("Role does not belong to this ministry")


# ---------- Events ----------

@router.get("")
def list_events(
    status: Optional[EventStatus] = Query(None),
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "viewEvents")

    stmt = select(Event).where(Event.church_id == profile.church_id)
    if status is not None:
        stmt = stmt.where(Event.status == status.value)
    events = db.execute(stmt.order_by(Event.start_time.asc(), Event.id.asc())).scalars().all()
    if not events:
        return {"data": []}

    ids = [e.id for e in events]
    needed = dict(
        db.execute(
            select(EventPosition.event_id, func.coalesce(func.sum(EventPosition.quantity_needed), 0))
            .where(EventPosition.event_id.in_(ids))
            .group_by(EventPosition.event_id)
        ).all()
    )
    filled = dict(
        db.execute(
            select(EventPosition.event_id, func.count(EventAssignment.id))
            .join(EventAssignment, EventAssignment.position_id == EventPosition.id)
            .where(EventPosition.event_id.in_(ids))
            .group_by(EventPosition.event_id)
        ).all()
    )

    out = []
    for e in events:
        item = _event_out(e)
        item["total_positions"] = int(needed.get(e.id, 0))
        item["filled_positions"] = int(filled.get(e.id, 0))
        out.append(item)
    return {"data": out}


@router.get("/{event_id}")
def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "viewEvents")

    event = db.execute(
        select(Event)
        .options(
            selectinload(Event.positions).selectinload(EventPosition.assignments).selectinload(EventAssignment.profile),
            selectinload(Event.positions).selectinload(EventPosition.ministry),
            selectinload(Event.positions).selectinload(EventPosition.role),
            selectinload(Event.responsible_person),
        )
        .where(Event.id == event_id, Event.church_id == profile.church_id)
    ).scalar_one_or_none()
    if event is None:
        raise NotFound("Event not found")

    out = _event_out(event)
    rp = event.responsible_person
    out["responsible_person"] = (
        {"id": rp.id, "first_name": rp.first_name, "last_name": rp.last_name} if rp else None
    )
    out["positions"] = [position_out(p, with_assignments=True) for p in event.positions]
    return {"data": out}


@router.post("")
def create_event(
    payload: EventCreateIn,
    tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "createEvent")
    _check_times(payload.start_time, payload.end_time)
    _require_church_profile(db, profile_id=payload.responsible_person_id, church_id=profile.church_id)

    event = Event(
        church_id=profile.church_id,
        title=payload.title.strip(),
        description=payload.description,
        start_time=payload.start_time,
        end_time=payload.end_time,
        status=payload.status.value,
        responsible_person_id=payload.responsible_person_id,
        created_by=profile.id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    tasks.add_task(best_effort(calendar_sync.sync_event), event.id)
    log.info("event created id=%s church_id=%s by=%s", event.id, event.church_id, profile.id)
    return {"data": _event_out(event)}


@router.patch("/{event_id}")
def update_event(
    event_id: int,
    payload: EventUpdateIn,
    tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "editEvent")
    event = _get_event(db, event_id=event_id, church_id=profile.church_id)

    data = payload.model_dump(exclude_unset=True)
    if "title" in data and data["title"] is not None:
        event.title = data["title"].strip()
    if "description" in data:
        event.description = data["description"]
    if data.get("start_time") is not None:
        event.start_time = data["start_time"]
    if data.get("end_time") is not None:
        event.end_time = data["end_time"]
    if data.get("status") is not None:
        event.status = EventStatus(data["status"]).value
    if "responsible_person_id" in data:
        _require_church_profile(db, profile_id=data["responsible_person_id"], church_id=profile.church_id)
        event.responsible_person_id = data["responsible_person_id"]

    _check_times(event.start_time, event.end_time)
    db.commit()
    db.refresh(event)

    tasks.add_task(best_effort(calendar_sync.sync_event), event.id)
    return {"data": _event_out(event)}


@router.delete("/{event_id}")
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "deleteEvent")
    event = _get_event(db, event_id=event_id, church_id=profile.church_id)
    db.delete(event)
    db.commit()
    log.info("event deleted id=%s by=%s", event_id, profile.id)
    return {"success": True}


# ---------- Positions ----------

@router.post("/{event_id}/positions")
def create_position(
    event_id: int,
    payload: PositionCreateIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "manageEventContent")
    _get_event(db, event_id=event_id, church_id=profile.church_id)
    validate_position_refs(db, church_id=profile.church_id, ministry_id=payload.ministry_id, role_id=payload.role_id)

    sort_order = payload.sort_order
    if sort_order is None:
        last = db.execute(
            select(func.max(EventPosition.sort_order)).where(EventPosition.event_id == event_id)
        ).scalar_one_or_none()
        sort_order = 0 if last is None else last + 1

    pos = EventPosition(
        event_id=event_id,
        title=payload.title.strip(),
        ministry_id=payload.ministry_id,
        role_id=payload.role_id,
        quantity_needed=payload.quantity_needed,
        notes=payload.notes,
        sort_order=sort_order,
    )
    db.add(pos)
    db.commit()
    db.refresh(pos)
    return {"data": position_out(pos)}


# ---------- Invitations ----------

@router.post("/{event_id}/invitations")
def invite_event(
    event_id: int,
    payload: SendInvitationsIn,
    tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "sendInvitations")
    event = _get_event(db, event_id=event_id, church_id=profile.church_id)
    result = send_invitations(
        db,
        church_id=profile.church_id,
        event_id=event.id,
        scope=payload.scope,
        tasks=tasks,
        ministry_id=payload.ministry_id,
        position_ids=payload.position_ids,
    )
    return {"success": True, **result}


@router.get("/{event_id}/invitations/pending-counts")
def event_pending_counts(
    event_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    check_feature(profile, "sendInvitations")
    return {"data": get_pending_invitation_counts(db, church_id=profile.church_id, event_id=event_id)}
