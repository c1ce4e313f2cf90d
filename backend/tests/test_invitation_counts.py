"""
Tests for pending-invitation counts (send dialog and scheduling matrix).
"""

from datetime import timedelta

from churchops.core.clock import calendar_date
from churchops.models import Event, EventPosition
from churchops.services.invitation_counts import (
    get_matrix_pending_invitation_counts,
    get_pending_invitation_counts,
)


def _add_event(db, world, *, days_later, title, ministry_id):
    start = world.event.start_time + timedelta(days=days_later)
    ev = Event(
        church_id=world.church.id,
        title=title,
        start_time=start,
        end_time=start + timedelta(hours=1),
        status="published",
    )
    db.add(ev)
    db.flush()
    pos = EventPosition(event_id=ev.id, ministry_id=ministry_id, title="Door", quantity_needed=1)
    db.add(pos)
    db.commit()
    return ev, pos


class TestEventCounts:
    def test_counts_only_not_invited(self, db, world, assign):
        assign(world.vocals_pos, world.alice)
        assign(world.vocals_pos, world.carol)
        assign(world.guitar_pos, world.bob, status="invited")

        counts = get_pending_invitation_counts(db, church_id=world.church.id, event_id=world.event.id)
        assert counts["total"] == 2
        assert counts["by_ministry"] == [
            {"ministry": {"id": world.worship.id, "name": "Worship", "color": "#336699"}, "count": 2}
        ]
        assert counts["by_position"] == [{"position": {"id": world.vocals_pos.id, "title": "Vocals"}, "count": 2}]

    def test_position_without_ministry_counts_in_total_only(self, db, world, assign):
        greeter = EventPosition(event_id=world.event.id, ministry_id=None, title="Greeter", quantity_needed=1)
        db.add(greeter)
        db.commit()
        assign(world.vocals_pos, world.alice)
        assign(greeter, world.bob)

        counts = get_pending_invitation_counts(db, church_id=world.church.id, event_id=world.event.id)
        assert counts["total"] == 2
        assert sum(p["count"] for p in counts["by_position"]) == counts["total"]
        assert sum(m["count"] for m in counts["by_ministry"]) == 1

    def test_other_church_gets_zero(self, db, world, assign):
        assign(world.vocals_pos, world.alice)
        counts = get_pending_invitation_counts(db, church_id=world.other_church.id, event_id=world.event.id)
        assert counts == {"total": 0, "by_ministry": [], "by_position": []}

    def test_endpoint(self, world, assign, client_for):
        assign(world.guitar_pos, world.bob)
        r = client_for(world.leader).get(f"/events/{world.event.id}/invitations/pending-counts")
        assert r.status_code == 200
        assert r.json()["data"]["total"] == 1


class TestMatrixCounts:
    def test_empty_input_gives_zeroed_structure(self, db, world):
        counts = get_matrix_pending_invitation_counts(db, church_id=world.church.id, event_ids=[])
        assert counts == {"total": 0, "by_date": [], "by_event": [], "by_ministry": [], "by_position": []}

    def test_groupings_and_sums(self, db, world, assign):
        earlier, door = _add_event(db, world, days_later=-2, title="Prayer Night", ministry_id=None)
        assign(world.vocals_pos, world.alice)
        assign(world.guitar_pos, world.bob)
        assign(door, world.carol)

        counts = get_matrix_pending_invitation_counts(
            db, church_id=world.church.id, event_ids=[world.event.id, earlier.id]
        )

        assert counts["total"] == 3
        assert sum(p["count"] for p in counts["by_position"]) == 3
        assert sum(m["count"] for m in counts["by_ministry"]) == 2
        assert sum(d["count"] for d in counts["by_date"]) == 3

        # dates ascending, events by start time
        assert [d["date"] for d in counts["by_date"]] == [
            calendar_date(earlier.start_time).isoformat(),
            calendar_date(world.event.start_time).isoformat(),
        ]
        assert [d["event_ids"] for d in counts["by_date"]] == [[earlier.id], [world.event.id]]
        assert [(e["event"]["id"], e["count"]) for e in counts["by_event"]] == [(earlier.id, 1), (world.event.id, 2)]

        door_entry = next(p for p in counts["by_position"] if p["position"]["id"] == door.id)
        assert door_entry["position"]["event_id"] == earlier.id
        assert door_entry["position"]["ministry"] is None

    def test_same_day_events_share_a_date(self, db, world, assign):
        late, door = _add_event(db, world, days_later=0, title="Evening Service", ministry_id=world.worship.id)
        assign(world.vocals_pos, world.alice)
        assign(door, world.bob)

        counts = get_matrix_pending_invitation_counts(
            db, church_id=world.church.id, event_ids=[world.event.id, late.id]
        )
        assert len(counts["by_date"]) == 1
        assert sorted(counts["by_date"][0]["event_ids"]) == sorted([world.event.id, late.id])
        assert counts["by_date"][0]["count"] == 2

    def test_endpoint(self, world, assign, client_for):
        assign(world.vocals_pos, world.alice)
        r = client_for(world.owner).post("/invitations/pending-counts", json={"event_ids": [world.event.id]})
        assert r.status_code == 200
        assert r.json()["data"]["total"] == 1

    def test_endpoint_requires_manage_role(self, world, client_for):
        r = client_for(world.bob).post("/invitations/pending-counts", json={"event_ids": [world.event.id]})
        assert r.status_code == 403
