from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from churchops.core.clock import calendar_date
from churchops.core.errors import NotFound
from churchops.models import (
    Event,
    EventAssignment,
    EventPosition,
    MinistryMember,
    Profile,
    VolunteerUnavailability,
)
from churchops.services.relations import unwrap_relation


def get_eligible_volunteers(db: Session, *, position_id: int, church_id: int) -> list[dict]:
    """People who can fill a position, with availability and double-booking flags.

    Eligible = active member of the position's ministry, holding the position's
    role (if any), not already assigned to this position. Unavailable people and
    people already serving elsewhere in the same event are kept but sorted last.
    """
    row = db.execute(
        select(EventPosition, Event)
        .join(Event, Event.id == EventPosition.event_id)
        .where(EventPosition.id == position_id, Event.church_id == church_id)
    ).one_or_none()
    if row is None:
        raise NotFound("Position not found")
    position, event = row

    members = db.execute(
        select(MinistryMember)
        .options(selectinload(MinistryMember.profile), selectinload(MinistryMember.roles))
        .where(
            MinistryMember.ministry_id == position.ministry_id,
            MinistryMember.is_active.is_(True),
        )
        .order_by(MinistryMember.id.asc())
    ).scalars().all()
    if not members:
        return []

    assigned_here = set(
        db.execute(select(EventAssignment.profile_id).where(EventAssignment.position_id == position_id)).scalars()
    )

    profiles: list[tuple[Profile, list]] = []
    for m in members:
        profile = unwrap_relation(m.profile)
        if profile is None or profile.id in assigned_here:
            continue
        roles = list(m.roles or [])
        if position.role_id is not None and not any(r.id == position.role_id for r in roles):
            continue
        profiles.append((profile, roles))
    if not profiles:
        return []

    profile_ids = [p.id for p, _ in profiles]
    event_date = calendar_date(event.start_time)

    # reason of the first matching range wins
    unavailable: dict[int, str | None] = {}
    for profile_id, reason in db.execute(
        select(VolunteerUnavailability.profile_id, VolunteerUnavailability.reason)
        .where(
            VolunteerUnavailability.profile_id.in_(profile_ids),
            VolunteerUnavailability.start_date <= event_date,
            VolunteerUnavailability.end_date >= event_date,
        )
        .order_by(VolunteerUnavailability.id.asc())
    ).all():
        unavailable.setdefault(profile_id, reason)

    assigned_elsewhere: dict[int, list[str]] = {}
    for profile_id, title in db.execute(
        select(EventAssignment.profile_id, EventPosition.title)
        .join(EventPosition, EventPosition.id == EventAssignment.position_id)
        .where(
            EventPosition.event_id == position.event_id,
            EventPosition.id != position_id,
            EventAssignment.profile_id.in_(profile_ids),
        )
        .order_by(EventPosition.sort_order.asc(), EventPosition.id.asc())
    ).all():
        assigned_elsewhere.setdefault(profile_id, []).append(title)

    out = []
    for profile, roles in profiles:
        assigned_positions = assigned_elsewhere.get(profile.id, [])
        out.append(
            {
                "id": profile.id,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "email": profile.email,
                "roles": [{"id": r.id, "name": r.name} for r in roles],
                "is_unavailable": profile.id in unavailable,
                "unavailable_reason": unavailable.get(profile.id),
                "is_already_assigned": bool(assigned_positions),
                "assigned_positions": assigned_positions,
            }
        )

    # list.sort is stable: ties keep member order
    out.sort(key=lambda v: (v["is_unavailable"], v["is_already_assigned"]))
    return out
