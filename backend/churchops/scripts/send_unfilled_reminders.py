"""Remind leaders about events that still have open or declined positions.

Run once a day from the backend environment (cron). For published events in
the next 7 days, every leader involved (event responsible person, leaders of
the ministries with open positions) is notified when the event is exactly
their `unfilled_positions_reminder.days_before` days away.

Env:
  - DATABASE_URL, SMTP_*, PUSH_SERVICE_* (same as the API)
  - DRY_RUN=1 logs matches without writing or sending
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from churchops.core.clock import as_utc, calendar_date, utcnow
from churchops.core.config import settings
from churchops.core.db import SessionLocal
from churchops.models import (
    AssignmentStatus,
    Event,
    EventPosition,
    EventStatus,
    Notification,
    NotificationType,
    Profile,
)
from churchops.services import mailer, push
from churchops.services.notifications import format_event_date
from churchops.services.preferences import (
    parse_notification_preferences,
    should_notify,
    should_send_unfilled_reminder,
)
from churchops.services.relations import unwrap_relation

log = logging.getLogger("churchops.unfilled_reminders")

LOOKAHEAD_DAYS = 7
PREFERENCE_KEY = "unfilled_positions_reminder"

DRY_RUN = os.getenv("DRY_RUN", "").strip() in ("1", "true", "yes")


@dataclass(frozen=True)
class UnfilledPosition:
    position_title: str
    ministry_name: str
    status: str  # unfilled | declined


def unfilled_positions(event: Event) -> tuple[list[UnfilledPosition], set[int]]:
    """Positions needing attention, plus the leader ids of their ministries."""
    out: list[UnfilledPosition] = []
    leader_ids: set[int] = set()
    for pos in event.positions:
        statuses = [a.status for a in pos.assignments]
        accepted = statuses.count(AssignmentStatus.ACCEPTED.value)
        declined = AssignmentStatus.DECLINED.value in statuses
        if accepted >= pos.quantity_needed and not declined:
            continue

        ministry = unwrap_relation(pos.ministry)
        out.append(
            UnfilledPosition(
                position_title=pos.title,
                ministry_name=ministry.name if ministry else "Ministry",
                status="unfilled" if accepted < pos.quantity_needed else "declined",
            )
        )
        if ministry is not None and ministry.leader_id:
            leader_ids.add(ministry.leader_id)
    return out, leader_ids


def _email_body(leader: Profile, event: Event, positions: list[UnfilledPosition], church_name: str) -> str:
    lines = [
        f"Hi {leader.first_name}," if leader.first_name else "Hi,",
        "",
        f'These positions need attention for "{event.title}" on {format_event_date(event.start_time)}:',
        "",
    ]
    for p in positions:
        lines.append(f"  - {p.position_title} ({p.ministry_name}): {p.status}")
    lines += [
        "",
        f"View event: {settings.SITE_URL.rstrip('/')}/dashboard/events/{event.id}",
        "",
        church_name,
    ]
    return "\n".join(lines)


def send_unfilled_position_reminders(db: Session, now: datetime | None = None) -> dict:
    now = as_utc(now) if now is not None else utcnow()
    today = now.date()
    day_start = datetime.combine(today, datetime.min.time(), tzinfo=now.tzinfo)
    horizon = day_start + timedelta(days=LOOKAHEAD_DAYS)

    events = db.execute(
        select(Event)
        .options(
            selectinload(Event.church),
            selectinload(Event.positions).selectinload(EventPosition.assignments),
            selectinload(Event.positions).selectinload(EventPosition.ministry),
        )
        .where(
            Event.status == EventStatus.PUBLISHED.value,
            Event.start_time >= day_start,
            Event.start_time <= horizon,
        )
        .order_by(Event.start_time.asc())
    ).scalars().all()

    stats = {"events_processed": 0, "notifications_sent": 0, "emails_sent": 0, "pushes_sent": 0}

    for event in events:
        positions, leader_ids = unfilled_positions(event)
        if not positions:
            continue
        stats["events_processed"] += 1

        if event.responsible_person_id:
            leader_ids.add(event.responsible_person_id)
        if not leader_ids:
            continue

        leaders = db.execute(select(Profile).where(Profile.id.in_(leader_ids)).order_by(Profile.id)).scalars().all()
        church = unwrap_relation(event.church)
        church_name = church.name if church else "Your Church"
        event_date = calendar_date(event.start_time)
        count = len(positions)
        summary = (
            f"{count} position{'s' if count > 1 else ''} need{'s' if count == 1 else ''} attention "
            f'for "{event.title}" on {format_event_date(event.start_time)}'
        )

        for leader in leaders:
            prefs = parse_notification_preferences(leader.notification_preferences)
            if not should_send_unfilled_reminder(prefs, event_date, today):
                continue

            if DRY_RUN:
                log.info("DRY_RUN match: leader=%s event=%s positions=%s", leader.id, event.id, count)
                continue

            if should_notify(prefs, PREFERENCE_KEY, "in_app"):
                db.add(
                    Notification(
                        church_id=event.church_id,
                        recipient_id=leader.id,
                        type=NotificationType.UNFILLED_POSITIONS.value,
                        title="Positions Need Attention",
                        message=summary,
                        event_id=event.id,
                    )
                )
                try:
                    db.commit()
                    stats["notifications_sent"] += 1
                except SQLAlchemyError:
                    db.rollback()
                    log.exception("failed to create unfilled reminder for leader %s", leader.id)

            if leader.email and leader.receive_email_notifications and should_notify(prefs, PREFERENCE_KEY, "email"):
                if mailer.send_email(
                    leader.email,
                    f"Positions need attention for {event.title}",
                    _email_body(leader, event, positions, church_name),
                ):
                    stats["emails_sent"] += 1

            if should_notify(prefs, PREFERENCE_KEY, "push"):
                if push.send_push_to_user(
                    leader.id,
                    title="Positions Need Attention",
                    body=summary,
                    data={"type": NotificationType.UNFILLED_POSITIONS.value, "event_id": event.id},
                ):
                    stats["pushes_sent"] += 1

    return stats


def main() -> int:
    with SessionLocal() as db:
        stats = send_unfilled_position_reminders(db)
    log.info("unfilled reminders %s", stats)
    return stats["notifications_sent"]


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    n = main()
    print(f"sent={n}")
