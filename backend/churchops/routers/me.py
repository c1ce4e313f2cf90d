from __future__ import annotations

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from churchops.auth.deps import get_current_profile
from churchops.core.clock import as_utc, utcnow
from churchops.core.db import get_db
from churchops.core.errors import Forbidden, NotFound, ValidationError
from churchops.models import Notification, Profile, VolunteerUnavailability
from churchops.services.preferences import merge_notification_preferences, parse_notification_preferences

router = APIRouter(prefix="/me", tags=["me"])


class UnavailabilityIn(BaseModel):
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=500)


class UnavailabilityUpdateIn(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=500)


class NotificationPreferencesIn(BaseModel):
    # key -> {in_app/email/push[/days_before]}; unknown keys are ignored
    preferences: Dict[str, Dict[str, Any]]


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError("End date must be on or after start date")


def _unavailability_out(u: VolunteerUnavailability) -> dict:
    return {
        "id": u.id,
        "start_date": u.start_date.isoformat(),
        "end_date": u.end_date.isoformat(),
        "reason": u.reason,
    }


def _get_own_unavailability(db: Session, *, entry_id: int, profile: Profile) -> VolunteerUnavailability:
    u = db.get(VolunteerUnavailability, entry_id)
    if u is None:
        raise NotFound("Entry not found")
    if u.profile_id != profile.id:
        raise Forbidden("You can only change your own unavailability")
    return u


def _notification_out(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "event_id": n.event_id,
        "assignment_id": n.assignment_id,
        "is_read": n.is_read,
        "is_actioned": n.is_actioned,
        "action_taken": n.action_taken,
        "expires_at": as_utc(n.expires_at),
        "created_at": as_utc(n.created_at),
    }


@router.get("")
def me(profile: Profile = Depends(get_current_profile)):
    return {
        "data": {
            "id": profile.id,
            "church_id": profile.church_id,
            "first_name": profile.first_name,
            "last_name": profile.last_name,
            "email": profile.email,
            "role": profile.role,
            "receive_email_notifications": profile.receive_email_notifications,
            "language": profile.language,
        }
    }


# ---------- Unavailability ----------

@router.get("/unavailability")
def list_unavailability(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows = db.execute(
        select(VolunteerUnavailability)
        .where(VolunteerUnavailability.profile_id == profile.id)
        .order_by(VolunteerUnavailability.start_date.asc(), VolunteerUnavailability.id.asc())
    ).scalars().all()
    return {"data": [_unavailability_out(u) for u in rows]}


@router.post("/unavailability")
def create_unavailability(
    payload: UnavailabilityIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    _check_range(payload.start_date, payload.end_date)
    u = VolunteerUnavailability(
        church_id=profile.church_id,
        profile_id=profile.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=(payload.reason or "").strip() or None,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return {"data": _unavailability_out(u)}


@router.patch("/unavailability/{entry_id}")
def update_unavailability(
    entry_id: int,
    payload: UnavailabilityUpdateIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    u = _get_own_unavailability(db, entry_id=entry_id, profile=profile)

    data = payload.model_dump(exclude_unset=True)
    start = data.get("start_date") or u.start_date
    end = data.get("end_date") or u.end_date
    _check_range(start, end)

    u.start_date = start
    u.end_date = end
    if "reason" in data:
        u.reason = (data["reason"] or "").strip() or None
    db.commit()
    db.refresh(u)
    return {"data": _unavailability_out(u)}


@router.delete("/unavailability/{entry_id}")
def delete_unavailability(
    entry_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    u = _get_own_unavailability(db, entry_id=entry_id, profile=profile)
    db.delete(u)
    db.commit()
    return {"success": True}


# ---------- Notifications inbox ----------

@router.get("/notifications")
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows = db.execute(
        select(Notification)
        .where(Notification.recipient_id == profile.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    ).scalars().all()
    return {"data": [_notification_out(n) for n in rows]}


@router.get("/notifications/unread-count")
def unread_count(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    n = db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == profile.id,
            Notification.is_read.is_(False),
        )
    ).scalar_one()
    return {"data": {"count": n}}


@router.get("/notifications/actionable-count")
def actionable_count(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Invitations still waiting for an answer (not actioned, not expired)."""
    rows = db.execute(
        select(Notification.expires_at).where(
            Notification.recipient_id == profile.id,
            Notification.is_actioned.is_(False),
            Notification.assignment_id.is_not(None),
        )
    ).scalars().all()
    now = utcnow()
    n = sum(1 for expires_at in rows if expires_at is None or as_utc(expires_at) > now)
    return {"data": {"count": n}}


@router.post("/notifications/{notification_id}/read")
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    n = db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.recipient_id == profile.id,
        )
    ).scalar_one_or_none()
    if n is None:
        raise NotFound("Notification not found")
    if not n.is_read:
        n.is_read = True
        n.read_at = utcnow()
        db.commit()
    return {"success": True}


@router.post("/notifications/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    res = db.execute(
        update(Notification)
        .where(Notification.recipient_id == profile.id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return {"success": True, "updated": res.rowcount}


# ---------- Notification preferences ----------

@router.get("/notification-preferences")
def get_notification_preferences(profile: Profile = Depends(get_current_profile)):
    prefs = parse_notification_preferences(profile.notification_preferences)
    return {
        "data": {
            "receive_email_notifications": profile.receive_email_notifications,
            "preferences": prefs.to_dict(),
        }
    }


@router.patch("/notification-preferences")
def update_notification_preferences(
    payload: NotificationPreferencesIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    prefs = merge_notification_preferences(profile.notification_preferences, payload.preferences)
    profile.notification_preferences = prefs.to_dict()
    db.commit()
    return {"data": {"preferences": prefs.to_dict()}}
