"""
Tests for the eligible-volunteer resolver.

Covers:
- active membership and role filtering
- exclusion of people already on the position
- unavailability (inclusive date range) and double-booking flags
- ordering: available first, then not-yet-serving, member order otherwise
- church scoping and the HTTP endpoint
"""

from datetime import timedelta

import pytest

from churchops.core.clock import calendar_date
from churchops.core.errors import NotFound
from churchops.models import EventPosition, MinistryMember, VolunteerUnavailability
from churchops.services.eligibility import get_eligible_volunteers


def _ids(rows):
    return [r["id"] for r in rows]


class TestFiltering:
    """Who shows up at all."""

    def test_role_filter_keeps_only_role_holders(self, db, world):
        """Only active members holding the position's role are returned."""
        rows = get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.church.id)
        assert _ids(rows) == [world.alice.id, world.carol.id]

    def test_inactive_members_are_skipped(self, db, world):
        rows = get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.church.id)
        assert world.dave.id not in _ids(rows)

    def test_position_without_role_takes_all_active_members(self, db, world):
        rows = get_eligible_volunteers(db, position_id=world.guitar_pos.id, church_id=world.church.id)
        assert _ids(rows) == [world.alice.id, world.bob.id, world.carol.id]

    def test_already_assigned_here_is_excluded(self, db, world, assign):
        """A person already on this exact position is never offered again."""
        assign(world.vocals_pos, world.alice)
        rows = get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.church.id)
        assert _ids(rows) == [world.carol.id]

    def test_result_shape(self, db, world):
        row = get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.church.id)[0]
        assert row == {
            "id": world.alice.id,
            "first_name": "Alice",
            "last_name": "Singer",
            "email": "alice@church.example",
            "roles": [{"id": world.vocals.id, "name": "Vocals"}],
            "is_unavailable": False,
            "unavailable_reason": None,
            "is_already_assigned": False,
            "assigned_positions": [],
        }

    def test_empty_ministry_returns_empty_list(self, db, world):
        db.query(MinistryMember).delete()
        db.commit()
        assert get_eligible_volunteers(db, position_id=world.guitar_pos.id, church_id=world.church.id) == []


class TestFlagsAndOrdering:
    """Unavailability and double-booking flags, and sort order."""

    def _block(self, db, world, profile, start, end, reason):
        db.add(
            VolunteerUnavailability(
                church_id=world.church.id, profile_id=profile.id, start_date=start, end_date=end, reason=reason
            )
        )
        db.commit()

    def test_unavailable_on_boundary_day(self, db, world):
        """The range is inclusive: an entry ending on the event date counts."""
        d = calendar_date(world.event.start_time)
        self._block(db, world, world.alice, d - timedelta(days=3), d, "Vacation")

        rows = get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.church.id)
        alice = next(r for r in rows if r["id"] == world.alice.id)
        assert alice["is_unavailable"] is True
        assert alice["unavailable_reason"] == "Vacation"

    def test_range_outside_event_date_is_ignored(self, db, world):
        d = calendar_date(world.event.start_time)
        self._block(db, world, world.alice, d + timedelta(days=1), d + timedelta(days=5), "Trip")

        rows = get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.church.id)
        assert all(r["is_unavailable"] is False for r in rows)

    def test_assigned_elsewhere_in_event(self, db, world, assign):
        assign(world.vocals_pos, world.alice)

        rows = get_eligible_volunteers(db, position_id=world.guitar_pos.id, church_id=world.church.id)
        alice = next(r for r in rows if r["id"] == world.alice.id)
        assert alice["is_already_assigned"] is True
        assert alice["assigned_positions"] == ["Vocals"]

    def test_sort_available_first_then_unbooked(self, db, world, assign):
        """Order: (is_unavailable, is_already_assigned), ties keep member order."""
        d = calendar_date(world.event.start_time)
        self._block(db, world, world.alice, d, d, "Sick")
        assign(world.vocals_pos, world.bob)

        rows = get_eligible_volunteers(db, position_id=world.guitar_pos.id, church_id=world.church.id)
        assert _ids(rows) == [world.carol.id, world.bob.id, world.alice.id]
        flags = [(r["is_unavailable"], r["is_already_assigned"]) for r in rows]
        assert flags == sorted(flags)


class TestScoping:
    def test_missing_position(self, db, world):
        with pytest.raises(NotFound):
            get_eligible_volunteers(db, position_id=9999, church_id=world.church.id)

    def test_other_church_cannot_see_position(self, db, world):
        with pytest.raises(NotFound):
            get_eligible_volunteers(db, position_id=world.vocals_pos.id, church_id=world.other_church.id)

    def test_endpoint_returns_data(self, world, client_for):
        r = client_for(world.alice).get(f"/positions/{world.vocals_pos.id}/eligible-volunteers")
        assert r.status_code == 200
        assert [v["id"] for v in r.json()["data"]] == [world.alice.id, world.carol.id]

    def test_endpoint_requires_session(self, world, client_for):
        r = client_for(None).get(f"/positions/{world.vocals_pos.id}/eligible-volunteers")
        assert r.status_code == 401
        assert r.json() == {"error": "Not authenticated"}

    def test_endpoint_rejects_plain_members(self, db, world, client_for):
        world.alice.role = "member"
        db.commit()
        r = client_for(world.alice).get(f"/positions/{world.vocals_pos.id}/eligible-volunteers")
        assert r.status_code == 403

    def test_endpoint_hides_other_church_positions(self, db, world, client_for):
        r = client_for(world.outsider).get(f"/positions/{world.vocals_pos.id}/eligible-volunteers")
        assert r.status_code == 404
        assert r.json() == {"error": "Position not found"}

    def test_new_position_without_members_is_empty(self, db, world, client_for):
        pos = EventPosition(event_id=world.event.id, ministry_id=None, title="Greeter", quantity_needed=1)
        db.add(pos)
        db.commit()
        r = client_for(world.owner).get(f"/positions/{pos.id}/eligible-volunteers")
        assert r.status_code == 200
        assert r.json() == {"data": []}
