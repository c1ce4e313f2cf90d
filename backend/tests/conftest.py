"""
Test configuration: in-memory SQLite, fresh schema per test, recorded outbound sends.

Settings are read at import time, so the environment is prepared before any
churchops module is imported.
"""

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SITE_URL"] = "https://church.example"
os.environ["COOKIE_SECURE"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from churchops.auth.deps import get_jwt_config  # noqa: E402
from churchops.auth.jwt_tokens import create_access_token  # noqa: E402
from churchops.core.db import Base, SessionLocal, engine  # noqa: E402
from churchops.main import app  # noqa: E402
from churchops.models import (  # noqa: E402
    Church,
    Event,
    EventAssignment,
    EventPosition,
    Ministry,
    MinistryMember,
    MinistryRole,
    Profile,
)
from churchops.services import calendar_sync, mailer, push  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Record email/push/calendar calls instead of sending them."""
    sent = SimpleNamespace(emails=[], pushes=[], syncs=[])

    def fake_email(to, subject, body):
        sent.emails.append({"to": to, "subject": subject, "body": body})
        return True

    def fake_push(profile_id, *, title, body, data=None):
        sent.pushes.append({"profile_id": profile_id, "title": title, "body": body, "data": data or {}})
        return True

    def fake_sync(event_id):
        sent.syncs.append(event_id)
        return True

    monkeypatch.setattr(mailer, "send_email", fake_email)
    monkeypatch.setattr(push, "send_push_to_user", fake_push)
    monkeypatch.setattr(calendar_sync, "sync_event", fake_sync)
    return sent


@pytest.fixture
def client_for():
    """Build a TestClient authenticated as the given profile (None = anonymous)."""
    clients = []

    def _make(profile):
        c = TestClient(app)
        if profile is not None:
            c.cookies.set("access_token", create_access_token(get_jwt_config(), profile.id, profile.church_id))
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


def _profile(db, church, first, last, role, **kw):
    p = Profile(
        church_id=church.id,
        first_name=first,
        last_name=last,
        email=f"{first.lower()}@church.example",
        role=role,
        **kw,
    )
    db.add(p)
    return p


@pytest.fixture
def world(db):
    """One church with a worship ministry, a published event next week and two positions.

    - owner, leader (ministry leader), responsible (event responsible person)
    - volunteers: alice (vocals), bob (guitar), carol (vocals), dave (inactive member)
    - positions: Vocals (role vocals), Guitar (no role)
    """
    church = Church(name="Grace Church")
    other_church = Church(name="Other Church")
    db.add_all([church, other_church])
    db.flush()

    owner = _profile(db, church, "Olivia", "Owner", "owner")
    leader = _profile(db, church, "Liam", "Leader", "leader")
    responsible = _profile(db, church, "Rita", "Responsible", "leader")
    alice = _profile(db, church, "Alice", "Singer", "volunteer")
    bob = _profile(db, church, "Bob", "Strummer", "volunteer")
    carol = _profile(db, church, "Carol", "Alto", "volunteer")
    dave = _profile(db, church, "Dave", "Away", "volunteer")
    outsider = _profile(db, other_church, "Oscar", "Outsider", "admin")
    db.flush()

    worship = Ministry(church_id=church.id, name="Worship", color="#336699", leader_id=leader.id)
    db.add(worship)
    db.flush()
    vocals = MinistryRole(ministry_id=worship.id, name="Vocals")
    guitar = MinistryRole(ministry_id=worship.id, name="Guitar")
    db.add_all([vocals, guitar])
    db.flush()

    members = [
        MinistryMember(ministry_id=worship.id, profile_id=alice.id, roles=[vocals]),
        MinistryMember(ministry_id=worship.id, profile_id=bob.id, roles=[guitar]),
        MinistryMember(ministry_id=worship.id, profile_id=carol.id, roles=[vocals]),
        MinistryMember(ministry_id=worship.id, profile_id=dave.id, roles=[vocals], is_active=False),
    ]
    db.add_all(members)

    start = (datetime.now(timezone.utc) + timedelta(days=10)).replace(hour=10, minute=0, second=0, microsecond=0)
    event = Event(
        church_id=church.id,
        title="Sunday Service",
        start_time=start,
        end_time=start + timedelta(hours=2),
        status="published",
        responsible_person_id=responsible.id,
        created_by=owner.id,
    )
    db.add(event)
    db.flush()

    vocals_pos = EventPosition(
        event_id=event.id, ministry_id=worship.id, role_id=vocals.id, title="Vocals", quantity_needed=2, sort_order=0
    )
    guitar_pos = EventPosition(
        event_id=event.id, ministry_id=worship.id, role_id=None, title="Guitar", quantity_needed=1, sort_order=1
    )
    db.add_all([vocals_pos, guitar_pos])
    db.commit()

    return SimpleNamespace(
        church=church,
        other_church=other_church,
        owner=owner,
        leader=leader,
        responsible=responsible,
        alice=alice,
        bob=bob,
        carol=carol,
        dave=dave,
        outsider=outsider,
        worship=worship,
        vocals=vocals,
        guitar=guitar,
        event=event,
        vocals_pos=vocals_pos,
        guitar_pos=guitar_pos,
    )


@pytest.fixture
def assign(db):
    """Create an assignment directly (status defaults to not-invited)."""

    def _assign(position, profile, status=None):
        a = EventAssignment(position_id=position.id, profile_id=profile.id, status=status)
        db.add(a)
        db.commit()
        return a

    return _assign
