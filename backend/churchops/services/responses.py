from __future__ import annotations

import logging

from fastapi import BackgroundTasks
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from churchops.core.clock import as_utc, utcnow
from churchops.core.errors import ActionError, Forbidden, InvalidState, NotFound, ValidationError
from churchops.models import (
    AssignmentStatus,
    EventAssignment,
    EventPosition,
    Notification,
    NotificationType,
    Profile,
)
from churchops.services import calendar_sync
from churchops.services.notifications import best_effort, notify_leaders_of_response
from churchops.services.relations import unwrap_relation

log = logging.getLogger("churchops.responses")

RESPONSES = (AssignmentStatus.ACCEPTED.value, AssignmentStatus.DECLINED.value)

# a response (or a change of mind) is allowed once the invite went out
RESPONDABLE_STATUSES = (
    AssignmentStatus.INVITED.value,
    AssignmentStatus.ACCEPTED.value,
    AssignmentStatus.DECLINED.value,
)

TOKEN_ACTIONS = {"accept": AssignmentStatus.ACCEPTED.value, "decline": AssignmentStatus.DECLINED.value}
MIN_TOKEN_LENGTH = 20


class TokenResponseError(ActionError):
    """Email-link response rejected; `reason` picks the page the user lands on."""

    status_code = 400

    def __init__(self, reason: str, previous: str | None = None):
        self.reason = reason
        self.previous = previous
        super().__init__(reason)


def _mark_invitation_actioned(db: Session, where, response: str) -> None:
    now = utcnow()
    try:
        db.execute(
            update(Notification)
            .where(*where)
            .values(
                is_actioned=True,
                action_taken=response,
                actioned_at=now,
                is_read=True,
                read_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("failed to mark invitation notification as actioned")


def _schedule_followups(tasks: BackgroundTasks, *, assignment_id: int, event_id: int, response: str) -> None:
    tasks.add_task(notify_leaders_of_response, assignment_id, response)
    tasks.add_task(best_effort(calendar_sync.sync_event), event_id)


def respond_to_invitation(
    db: Session,
    *,
    profile: Profile,
    assignment_id: int,
    response: str,
    tasks: BackgroundTasks,
) -> dict:
    """Accept or decline (or change a previous answer to) an invitation.

    Only the invited person can respond. Leaders are notified and the event's
    calendar entry is refreshed in the background.
    """
    if response not in RESPONSES:
        raise ValidationError("Invalid response")

    assignment = db.execute(
        select(EventAssignment)
        .options(joinedload(EventAssignment.position))
        .where(EventAssignment.id == assignment_id)
    ).scalar_one_or_none()
    if assignment is None:
        raise NotFound("Assignment not found")

    if assignment.profile_id != profile.id:
        raise Forbidden("You can only respond to your own invitations")

    if assignment.status not in RESPONDABLE_STATUSES:
        raise InvalidState()

    event_id = assignment.position.event_id

    assignment.status = response
    assignment.responded_at = utcnow()
    db.commit()

    _mark_invitation_actioned(
        db,
        (
            Notification.assignment_id == assignment_id,
            Notification.type == NotificationType.POSITION_INVITATION.value,
        ),
        response,
    )

    _schedule_followups(tasks, assignment_id=assignment_id, event_id=event_id, response=response)
    log.info("assignment %s %s by profile %s", assignment_id, response, profile.id)
    return {"success": True, "response": response}


def respond_by_token(db: Session, *, token: str | None, action: str | None, tasks: BackgroundTasks) -> dict:
    """Respond through the accept/decline link in an invitation email.

    The token replaces the session: it maps to exactly one invitation
    notification and can be used once.
    """
    if not token or len(token) < MIN_TOKEN_LENGTH:
        raise TokenResponseError("invalid_token")
    if action not in TOKEN_ACTIONS:
        raise TokenResponseError("invalid_action")

    notification = db.execute(
        select(Notification).where(
            Notification.email_token == token,
            Notification.type == NotificationType.POSITION_INVITATION.value,
        )
    ).scalar_one_or_none()
    if notification is None:
        raise TokenResponseError("token_not_found")

    if notification.expires_at is not None and as_utc(notification.expires_at) < utcnow():
        raise TokenResponseError("expired")

    if notification.is_actioned:
        raise TokenResponseError("already_responded", previous=notification.action_taken or "unknown")

    assignment = None
    if notification.assignment_id:
        assignment = db.execute(
            select(EventAssignment)
            .options(joinedload(EventAssignment.position).joinedload(EventPosition.event))
            .where(EventAssignment.id == notification.assignment_id)
        ).scalar_one_or_none()
    if assignment is None:
        raise TokenResponseError("no_assignment")

    response = TOKEN_ACTIONS[action]
    position = assignment.position
    event = unwrap_relation(position.event)
    summary = {
        "response": response,
        "event_title": event.title if event else "",
        "position_title": position.title,
    }

    try:
        assignment.status = response
        assignment.responded_at = utcnow()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("failed to update assignment %s from email link", notification.assignment_id)
        raise TokenResponseError("update_failed")

    _mark_invitation_actioned(db, (Notification.id == notification.id,), response)

    _schedule_followups(tasks, assignment_id=assignment.id, event_id=position.event_id, response=response)
    return summary
