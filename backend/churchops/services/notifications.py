"""Notification fan-out: in-app rows, email and push.

Everything here runs detached from the request (FastAPI BackgroundTasks) after
the status change it reports on has been committed. Failures are logged and
dropped; they never reach the caller.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from churchops.core.clock import as_utc
from churchops.core.config import settings
from churchops.core.db import SessionLocal
from churchops.models import (
    Event,
    EventAssignment,
    EventPosition,
    Ministry,
    Notification,
    NotificationType,
    Profile,
)
from churchops.services import mailer, push
from churchops.services.preferences import parse_notification_preferences, should_notify
from churchops.services.relations import unwrap_relation

log = logging.getLogger("churchops.notifications")


def best_effort(fn):
    """Run a detached side effect; any failure only reaches the log."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except Exception:
            log.exception("background task %s failed", fn.__name__)
            return None

    return wrapper


def format_event_date(dt: datetime) -> str:
    dt = as_utc(dt)
    return f"{dt:%A, %B} {dt.day}, {dt.year}"


def respond_url(token: str, action: str) -> str:
    query = urlencode({"token": token, "action": action})
    return f"{settings.SITE_URL.rstrip('/')}/api/invitation/respond?{query}"


# ---------- Invitations ----------

@dataclass(frozen=True)
class InvitationMessage:
    """Snapshot of one sent invitation, safe to hand to a background task."""

    notification_id: int
    recipient_id: int
    email_token: str
    assignment_id: int
    position_title: str
    event_id: int
    event_title: str
    event_start: datetime
    church_name: str
    ministry_name: str


def _invitation_email_body(recipient: Profile, msg: InvitationMessage) -> str:
    greeting = f"Hi {recipient.first_name}," if recipient.first_name else "Hi,"
    return "\n".join(
        [
            greeting,
            "",
            f'You have been invited to serve as "{msg.position_title}" ({msg.ministry_name}) '
            f'for "{msg.event_title}" on {format_event_date(msg.event_start)}.',
            "",
            f"Accept: {respond_url(msg.email_token, 'accept')}",
            f"Decline: {respond_url(msg.email_token, 'decline')}",
            "",
            msg.church_name,
        ]
    )


def _send_invitation(db: Session, msg: InvitationMessage) -> None:
    recipient = db.get(Profile, msg.recipient_id)
    if recipient is None:
        log.warning("invitation recipient not found profile_id=%s", msg.recipient_id)
        return

    if recipient.receive_email_notifications and recipient.email:
        mailer.send_email(
            recipient.email,
            f"You've been invited to serve: {msg.position_title} - {msg.event_title}",
            _invitation_email_body(recipient, msg),
        )

    # push opt-out lives in the push relay
    push.send_push_to_user(
        recipient.id,
        title="You've been invited to serve",
        body=f'"{msg.position_title}" for "{msg.event_title}"',
        data={
            "type": NotificationType.POSITION_INVITATION.value,
            "event_id": msg.event_id,
            "assignment_id": msg.assignment_id,
        },
    )


@best_effort
def send_invitation_messages(messages: list[InvitationMessage]) -> None:
    with SessionLocal() as db:
        for msg in messages:
            try:
                _send_invitation(db, msg)
            except Exception:
                log.exception("invitation delivery failed notification_id=%s", msg.notification_id)
    log.info("invitation fan-out done count=%s", len(messages))


# ---------- Responses ----------

@dataclass(frozen=True)
class ResponseInfo:
    church_id: int
    church_name: str
    event_id: int
    event_title: str
    event_start: datetime
    assignment_id: int
    position_title: str
    ministry_name: str
    responder_name: str
    response: str


def _response_verb_and_mark(response: str) -> tuple[str, str]:
    return ("accepted", "✅") if response == "accepted" else ("declined", "❌")


def _notify_recipient(db: Session, recipient: Profile, preference_key: str, info: ResponseInfo) -> None:
    prefs = parse_notification_preferences(recipient.notification_preferences)
    verb, mark = _response_verb_and_mark(info.response)

    if should_notify(prefs, preference_key, "in_app"):
        db.add(
            Notification(
                church_id=info.church_id,
                recipient_id=recipient.id,
                type=NotificationType.INVITATION_RESPONSE.value,
                title=f"{mark} Invitation {verb}",
                message=(
                    f'{info.responder_name} has {verb} the invitation to serve as '
                    f'"{info.position_title}" for "{info.event_title}"'
                ),
                event_id=info.event_id,
                assignment_id=info.assignment_id,
            )
        )
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            log.exception("failed to create response notification recipient_id=%s", recipient.id)

    if recipient.email and recipient.receive_email_notifications and should_notify(prefs, preference_key, "email"):
        view_url = f"{settings.SITE_URL.rstrip('/')}/dashboard/events/{info.event_id}"
        body = "\n".join(
            [
                f"Hi {recipient.first_name}," if recipient.first_name else "Hi,",
                "",
                f'{info.responder_name} has {verb} the invitation to serve as "{info.position_title}" '
                f'({info.ministry_name}) for "{info.event_title}" on {format_event_date(info.event_start)}.',
                "",
                f"View event: {view_url}",
                "",
                info.church_name,
            ]
        )
        mailer.send_email(
            recipient.email,
            f"{mark} {info.responder_name} {verb} {info.position_title} for {info.event_title}",
            body,
        )

    if should_notify(prefs, preference_key, "push"):
        push.send_push_to_user(
            recipient.id,
            title=f"{mark} Invitation {verb}",
            body=f'{info.responder_name} has {verb} "{info.position_title}" for "{info.event_title}"',
            data={"type": NotificationType.INVITATION_RESPONSE.value, "event_id": info.event_id},
        )


def notify_leaders_of_response_in(db: Session, assignment_id: int, response: str) -> list[int]:
    """Notify the ministry leader and the event's responsible person.

    Each recipient is notified once even if they hold both roles. Returns the
    profile ids that were considered (after dedup), for logging and tests.
    """
    assignment = db.execute(
        select(EventAssignment)
        .options(
            joinedload(EventAssignment.profile),
            joinedload(EventAssignment.position).joinedload(EventPosition.ministry).joinedload(Ministry.leader),
            joinedload(EventAssignment.position)
            .joinedload(EventPosition.event)
            .joinedload(Event.responsible_person),
        )
        .where(EventAssignment.id == assignment_id)
    ).unique().scalar_one_or_none()
    if assignment is None:
        log.error("assignment %s not found for leader notification", assignment_id)
        return []

    position = assignment.position
    ministry = unwrap_relation(position.ministry)
    event = unwrap_relation(position.event)
    if event is None:
        log.error("event not found for assignment %s", assignment_id)
        return []

    church = unwrap_relation(event.church)
    responder = unwrap_relation(assignment.profile)
    info = ResponseInfo(
        church_id=event.church_id,
        church_name=church.name if church else "Your Church",
        event_id=event.id,
        event_title=event.title,
        event_start=event.start_time,
        assignment_id=assignment.id,
        position_title=position.title,
        ministry_name=ministry.name if ministry else "Ministry",
        responder_name=(responder.full_name if responder and responder.full_name else "A volunteer"),
        response=response,
    )

    ministry_key = f"ministry_invitation_{response}"
    event_key = f"event_invitation_{response}"

    notified: list[int] = []
    recipients = [
        (unwrap_relation(ministry.leader) if ministry else None, ministry_key),
        (unwrap_relation(event.responsible_person), event_key),
    ]
    for recipient, key in recipients:
        if recipient is None or recipient.id in notified:
            continue
        notified.append(recipient.id)
        _notify_recipient(db, recipient, key, info)

    return notified


@best_effort
def notify_leaders_of_response(assignment_id: int, response: str) -> None:
    with SessionLocal() as db:
        notified = notify_leaders_of_response_in(db, assignment_id, response)
    log.info("response fan-out assignment_id=%s recipients=%s", assignment_id, notified)
