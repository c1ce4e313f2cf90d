"""
Tests for the accept/decline links in invitation emails.

GET /api/invitation/respond?token=...&action=... redirects to a page on the
web app; no session is needed.
"""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from churchops.core.clock import utcnow
from churchops.models import EventAssignment, Notification, NotificationType

TOKEN = "abcdefghijklmnopqrstuvwxyz012345"


@pytest.fixture
def invitation(db, world, assign):
    a = assign(world.vocals_pos, world.alice, status="invited")
    n = Notification(
        church_id=world.church.id,
        recipient_id=world.alice.id,
        type=NotificationType.POSITION_INVITATION.value,
        title="You've been invited to serve",
        event_id=world.event.id,
        assignment_id=a.id,
        email_token=TOKEN,
        expires_at=world.event.start_time,
    )
    db.add(n)
    db.commit()
    return n


def _follow(client_for, **params):
    r = client_for(None).get("/api/invitation/respond", params=params, follow_redirects=False)
    assert r.status_code == 303
    loc = urlparse(r.headers["location"])
    assert f"{loc.scheme}://{loc.netloc}" == "https://church.example"
    return loc.path, {k: v[0] for k, v in parse_qs(loc.query).items()}


class TestEmailResponse:
    def test_accept_link(self, db, world, invitation, client_for, outbox):
        path, query = _follow(client_for, token=TOKEN, action="accept")

        assert path == "/invitation/success"
        assert query == {"action": "accepted", "event": "Sunday Service", "position": "Vocals"}

        db.expire_all()
        assert db.get(EventAssignment, invitation.assignment_id).status == "accepted"
        n = db.get(Notification, invitation.id)
        assert n.is_actioned is True and n.action_taken == "accepted" and n.is_read is True
        assert outbox.syncs == [world.event.id]

    def test_link_is_single_use(self, invitation, client_for):
        _follow(client_for, token=TOKEN, action="decline")
        path, query = _follow(client_for, token=TOKEN, action="accept")

        assert path == "/invitation/already-responded"
        assert query == {"previous": "declined"}

    @pytest.mark.parametrize(
        "params, reason",
        [
            ({"token": "short", "action": "accept"}, "invalid_token"),
            ({"action": "accept"}, "invalid_token"),
            ({"token": TOKEN, "action": "maybe"}, "invalid_action"),
            ({"token": "x" * 32, "action": "accept"}, "token_not_found"),
        ],
    )
    def test_rejected_links(self, invitation, client_for, params, reason):
        path, query = _follow(client_for, **params)
        assert path == "/invitation/error"
        assert query == {"reason": reason}

    def test_expired_link(self, db, invitation, client_for):
        invitation.expires_at = utcnow() - timedelta(minutes=1)
        db.commit()

        path, _ = _follow(client_for, token=TOKEN, action="accept")
        assert path == "/invitation/expired"

        db.expire_all()
        assert db.get(EventAssignment, invitation.assignment_id).status == "invited"

    def test_notification_without_assignment(self, db, invitation, client_for):
        invitation.assignment_id = None
        db.commit()

        path, query = _follow(client_for, token=TOKEN, action="accept")
        assert path == "/invitation/error"
        assert query == {"reason": "no_assignment"}
