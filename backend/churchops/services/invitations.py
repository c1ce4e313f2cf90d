from __future__ import annotations

import logging
import secrets
from datetime import date
from typing import Iterable

from fastapi import BackgroundTasks
from sqlalchemy import Select, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload

from churchops.core.clock import calendar_date, utcnow
from churchops.core.errors import NoPendingAssignments, ValidationError
from churchops.models import (
    AssignmentStatus,
    Event,
    EventAssignment,
    EventPosition,
    Notification,
    NotificationType,
)
from churchops.services.notifications import InvitationMessage, send_invitation_messages
from churchops.services.relations import unwrap_relation

log = logging.getLogger("churchops.invitations")

EMAIL_TOKEN_BYTES = 24  # 32 url-safe characters


def new_email_token() -> str:
    return secrets.token_urlsafe(EMAIL_TOKEN_BYTES)


def _pending_assignments_query(church_id: int) -> Select:
    """Assignments not invited yet, with position/event/ministry loaded."""
    return (
        select(EventAssignment)
        .join(EventAssignment.position)
        .join(EventPosition.event)
        .options(
            contains_eager(EventAssignment.position).contains_eager(EventPosition.event).joinedload(Event.church),
            contains_eager(EventAssignment.position).joinedload(EventPosition.ministry),
        )
        .where(EventAssignment.status.is_(None), Event.church_id == church_id)
        .order_by(Event.start_time.asc(), EventPosition.sort_order.asc(), EventAssignment.id.asc())
    )


def _invite(db: Session, assignments: list[EventAssignment], tasks: BackgroundTasks) -> dict:
    """Move assignments to 'invited', create invitation notifications, schedule delivery."""
    drafts = []
    for a in assignments:
        position = a.position
        event = unwrap_relation(position.event)
        if event is None:
            continue
        church = unwrap_relation(event.church)
        ministry = unwrap_relation(position.ministry)
        drafts.append(
            {
                "assignment_id": a.id,
                "recipient_id": a.profile_id,
                "church_id": event.church_id,
                "church_name": church.name if church else "Your Church",
                "position_title": position.title,
                "ministry_name": ministry.name if ministry else "Ministry",
                "event_id": event.id,
                "event_title": event.title,
                "event_start": event.start_time,
            }
        )

    now = utcnow()

    # the status change is the source of truth: one statement, committed first.
    # Rows another send already moved are not returned and get no notification.
    invited_ids = set(
        db.execute(
            update(EventAssignment)
            .where(
                EventAssignment.id.in_([a.id for a in assignments]),
                EventAssignment.status.is_(None),
            )
            .values(status=AssignmentStatus.INVITED.value, invited_at=now)
            .returning(EventAssignment.id)
            .execution_options(synchronize_session=False)
        ).scalars()
    )
    db.commit()
    if not invited_ids:
        raise NoPendingAssignments()
    drafts = [d for d in drafts if d["assignment_id"] in invited_ids]

    rows = []
    for d in drafts:
        n = Notification(
            church_id=d["church_id"],
            recipient_id=d["recipient_id"],
            type=NotificationType.POSITION_INVITATION.value,
            title="You've been invited to serve",
            message=f'You\'ve been assigned to "{d["position_title"]}" for "{d["event_title"]}"',
            event_id=d["event_id"],
            assignment_id=d["assignment_id"],
            expires_at=d["event_start"],
            email_token=new_email_token(),
        )
        db.add(n)
        rows.append((n, d))

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("failed to create invitation notifications for %s assignments", len(rows))
        rows = []

    messages = [
        InvitationMessage(
            notification_id=n.id,
            recipient_id=d["recipient_id"],
            email_token=n.email_token,
            assignment_id=d["assignment_id"],
            position_title=d["position_title"],
            event_id=d["event_id"],
            event_title=d["event_title"],
            event_start=d["event_start"],
            church_name=d["church_name"],
            ministry_name=d["ministry_name"],
        )
        for n, d in rows
    ]
    if messages:
        tasks.add_task(send_invitation_messages, messages)

    log.info("invited assignments=%s notifications=%s", len(invited_ids), len(messages))
    return {"invited_count": len(invited_ids)}


def send_invitations(
    db: Session,
    *,
    church_id: int,
    event_id: int,
    scope: str,
    tasks: BackgroundTasks,
    ministry_id: int | None = None,
    position_ids: Iterable[int] | None = None,
) -> dict:
    """Invite everyone assigned (but not yet invited) within one event.

    scope: all | ministry (needs ministry_id) | positions (needs position_ids).
    """
    position_ids = list(position_ids or [])
    stmt = _pending_assignments_query(church_id)

    if scope == "all":
        stmt = stmt.where(Event.id == event_id)
    elif scope == "ministry" and ministry_id:
        stmt = stmt.where(Event.id == event_id, EventPosition.ministry_id == ministry_id)
    elif scope == "positions" and position_ids:
        stmt = stmt.where(Event.id == event_id, EventAssignment.position_id.in_(position_ids))
    else:
        raise ValidationError("Invalid scope or missing parameters")

    assignments = db.execute(stmt).unique().scalars().all()
    if not assignments:
        raise NoPendingAssignments()

    return _invite(db, list(assignments), tasks)


def send_bulk_invitations(
    db: Session,
    *,
    church_id: int,
    event_ids: Iterable[int],
    scope: str,
    tasks: BackgroundTasks,
    selected_dates: Iterable[date] | None = None,
    selected_event_ids: Iterable[int] | None = None,
    selected_ministry_ids: Iterable[int] | None = None,
    selected_position_ids: Iterable[int] | None = None,
) -> dict:
    """Invite across several events (scheduling matrix).

    event_ids bounds the candidate set; scope narrows it further:
    all | dates | events | ministries | positions.
    """
    event_ids = list(event_ids or [])
    selected_dates = set(selected_dates or [])
    selected_event_ids = list(selected_event_ids or [])
    selected_ministry_ids = list(selected_ministry_ids or [])
    selected_position_ids = list(selected_position_ids or [])

    if not event_ids:
        raise ValidationError("Invalid scope or missing parameters")

    stmt = _pending_assignments_query(church_id).where(Event.id.in_(event_ids))

    if scope == "all":
        pass
    elif scope == "dates" and selected_dates:
        # filtered after the fetch, see below
        pass
    elif scope == "events" and selected_event_ids:
        stmt = stmt.where(Event.id.in_(selected_event_ids))
    elif scope == "ministries" and selected_ministry_ids:
        stmt = stmt.where(EventPosition.ministry_id.in_(selected_ministry_ids))
    elif scope == "positions" and selected_position_ids:
        stmt = stmt.where(EventAssignment.position_id.in_(selected_position_ids))
    else:
        raise ValidationError("Invalid scope or missing parameters")

    assignments = list(db.execute(stmt).unique().scalars().all())
    if not assignments:
        raise NoPendingAssignments()

    if scope == "dates":
        # TODO: push this into the query as start_time ranges, one per selected date
        assignments = [
            a
            for a in assignments
            if a.position.event is not None and calendar_date(a.position.event.start_time) in selected_dates
        ]
        if not assignments:
            raise NoPendingAssignments("No pending assignments found for selected dates")

    return _invite(db, assignments, tasks)
