"""
Tests for the daily unfilled-positions reminder.
"""

from datetime import timedelta

from churchops.core.clock import as_utc
from churchops.models import Notification, NotificationType
from churchops.scripts.send_unfilled_reminders import send_unfilled_position_reminders, unfilled_positions


def _reminders(db):
    db.expire_all()
    return (
        db.query(Notification)
        .filter(Notification.type == NotificationType.UNFILLED_POSITIONS.value)
        .order_by(Notification.recipient_id)
        .all()
    )


def _days_before(world, days):
    """A "now" that puts the event `days` days away."""
    return as_utc(world.event.start_time) - timedelta(days=days)


class TestUnfilledPositions:
    def test_detects_unfilled_and_declined(self, db, world, assign):
        assign(world.vocals_pos, world.alice, status="accepted")
        assign(world.guitar_pos, world.bob, status="accepted")
        assign(world.guitar_pos, world.carol, status="declined")
        db.expire_all()

        positions, leaders = unfilled_positions(world.event)
        assert [(p.position_title, p.status) for p in positions] == [("Vocals", "unfilled"), ("Guitar", "declined")]
        assert leaders == {world.leader.id}

    def test_fully_staffed_event_is_skipped(self, db, world, assign):
        assign(world.vocals_pos, world.alice, status="accepted")
        assign(world.vocals_pos, world.carol, status="accepted")
        assign(world.guitar_pos, world.bob, status="accepted")
        db.expire_all()

        positions, _ = unfilled_positions(world.event)
        assert positions == []


class TestSendReminders:
    def test_default_three_days_before(self, db, world, outbox):
        now = _days_before(world, 3)

        stats = send_unfilled_position_reminders(db, now=now)

        assert stats["events_processed"] == 1
        assert sorted(n.recipient_id for n in _reminders(db)) == sorted([world.leader.id, world.responsible.id])
        assert "2 positions need attention" in _reminders(db)[0].message
        assert sorted(e["to"] for e in outbox.emails) == ["liam@church.example", "rita@church.example"]
        assert len(outbox.pushes) == 2

    def test_other_days_send_nothing(self, db, world, outbox):
        stats = send_unfilled_position_reminders(db, now=_days_before(world, 5))
        assert stats["notifications_sent"] == 0
        assert _reminders(db) == []
        assert outbox.emails == []

    def test_custom_days_before_and_channels(self, db, world, outbox):
        world.leader.notification_preferences = {
            "unfilled_positions_reminder": {"days_before": 5, "email": False}
        }
        db.commit()

        send_unfilled_position_reminders(db, now=_days_before(world, 5))

        assert [n.recipient_id for n in _reminders(db)] == [world.leader.id]
        assert outbox.emails == []
        assert [p["profile_id"] for p in outbox.pushes] == [world.leader.id]

    def test_draft_events_are_ignored(self, db, world, outbox):
        world.event.status = "draft"
        db.commit()

        stats = send_unfilled_position_reminders(db, now=_days_before(world, 3))
        assert stats["events_processed"] == 0

    def test_events_beyond_a_week_are_ignored(self, db, world, outbox):
        world.leader.notification_preferences = {"unfilled_positions_reminder": {"days_before": 9}}
        db.commit()

        stats = send_unfilled_position_reminders(db, now=_days_before(world, 9))
        assert stats["events_processed"] == 0
