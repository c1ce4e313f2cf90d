from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, contains_eager

from churchops.core.clock import as_utc, calendar_date
from churchops.models import Event, EventAssignment, EventPosition, Ministry
from churchops.services.relations import unwrap_relation


def _ministry_out(m: Ministry | None) -> dict | None:
    if m is None:
        return None
    return {"id": m.id, "name": m.name, "color": m.color}


def _pending_rows(db: Session, church_id: int, event_ids: list[int]) -> list[EventAssignment]:
    stmt = (
        select(EventAssignment)
        .join(EventAssignment.position)
        .join(EventPosition.event)
        .options(
            contains_eager(EventAssignment.position).contains_eager(EventPosition.event),
            contains_eager(EventAssignment.position).joinedload(EventPosition.ministry),
        )
        .where(
            EventAssignment.status.is_(None),
            Event.church_id == church_id,
            Event.id.in_(event_ids),
        )
        .order_by(EventAssignment.id.asc())
    )
    return list(db.execute(stmt).unique().scalars().all())


def get_pending_invitation_counts(db: Session, *, church_id: int, event_id: int) -> dict:
    """Not-yet-invited assignments of one event, per ministry and per position."""
    by_ministry: dict[int, dict] = {}
    by_position: dict[int, dict] = {}

    rows = _pending_rows(db, church_id, [event_id])
    for a in rows:
        position = a.position
        ministry = unwrap_relation(position.ministry)

        if ministry is not None:
            entry = by_ministry.setdefault(ministry.id, {"ministry": _ministry_out(ministry), "count": 0})
            entry["count"] += 1

        entry = by_position.setdefault(
            position.id, {"position": {"id": position.id, "title": position.title}, "count": 0}
        )
        entry["count"] += 1

    return {
        "total": len(rows),
        "by_ministry": list(by_ministry.values()),
        "by_position": list(by_position.values()),
    }


def get_matrix_pending_invitation_counts(db: Session, *, church_id: int, event_ids: Iterable[int]) -> dict:
    """Same counts across several events, also grouped by calendar date and by event."""
    event_ids = list(event_ids or [])
    if not event_ids:
        return {"total": 0, "by_date": [], "by_event": [], "by_ministry": [], "by_position": []}

    by_date: dict[str, dict] = {}
    by_event: dict[int, dict] = {}
    by_ministry: dict[int, dict] = {}
    by_position: dict[int, dict] = {}

    rows = _pending_rows(db, church_id, event_ids)
    for a in rows:
        position = a.position
        event = unwrap_relation(position.event)
        ministry = unwrap_relation(position.ministry)
        if event is None:
            continue

        day = calendar_date(event.start_time).isoformat()
        entry = by_date.setdefault(day, {"date": day, "event_ids": [], "count": 0})
        entry["count"] += 1
        if event.id not in entry["event_ids"]:
            entry["event_ids"].append(event.id)

        entry = by_event.setdefault(
            event.id,
            {
                "event": {"id": event.id, "title": event.title, "start_time": as_utc(event.start_time)},
                "count": 0,
            },
        )
        entry["count"] += 1

        if ministry is not None:
            entry = by_ministry.setdefault(ministry.id, {"ministry": _ministry_out(ministry), "count": 0})
            entry["count"] += 1

        entry = by_position.setdefault(
            position.id,
            {
                "position": {
                    "id": position.id,
                    "title": position.title,
                    "event_id": event.id,
                    "ministry": _ministry_out(ministry),
                },
                "count": 0,
            },
        )
        entry["count"] += 1

    return {
        "total": len(rows),
        "by_date": sorted(by_date.values(), key=lambda d: d["date"]),
        "by_event": sorted(by_event.values(), key=lambda e: e["event"]["start_time"]),
        "by_ministry": list(by_ministry.values()),
        "by_position": list(by_position.values()),
    }
