"""Per-recipient notification preferences.

Profiles keep preferences as loose JSON. Everything here turns that JSON into
typed records with defaults, so call sites only ever ask should_notify().
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Literal

Channel = Literal["in_app", "email", "push"]

CHANNELS: tuple[str, ...] = ("in_app", "email", "push")

DEFAULT_REMINDER_DAYS_BEFORE = 3

RESPONSE_KEYS = (
    "ministry_invitation_accepted",
    "ministry_invitation_declined",
    "event_invitation_accepted",
    "event_invitation_declined",
)

# old single keys that used to cover both accepted and declined
LEGACY_KEYS = {
    "ministry_invitation_accepted": "ministry_invitation_responses",
    "ministry_invitation_declined": "ministry_invitation_responses",
    "event_invitation_accepted": "event_invitation_responses",
    "event_invitation_declined": "event_invitation_responses",
}


@dataclass
class ChannelPrefs:
    in_app: bool = True
    email: bool = True
    push: bool = True


@dataclass
class ReminderPrefs(ChannelPrefs):
    days_before: int = DEFAULT_REMINDER_DAYS_BEFORE


@dataclass
class NotificationPreferences:
    ministry_invitation_accepted: ChannelPrefs = field(default_factory=ChannelPrefs)
    ministry_invitation_declined: ChannelPrefs = field(default_factory=ChannelPrefs)
    event_invitation_accepted: ChannelPrefs = field(default_factory=ChannelPrefs)
    event_invitation_declined: ChannelPrefs = field(default_factory=ChannelPrefs)
    pending_member_registrations: ChannelPrefs = field(default_factory=ChannelPrefs)
    unfilled_positions_reminder: ReminderPrefs = field(default_factory=ReminderPrefs)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _parse_channel(value: Any, default: ChannelPrefs) -> ChannelPrefs:
    if not isinstance(value, dict):
        return ChannelPrefs(default.in_app, default.email, default.push)
    return ChannelPrefs(
        **{ch: value[ch] if isinstance(value.get(ch), bool) else getattr(default, ch) for ch in CHANNELS}
    )


def _parse_reminder(value: Any) -> ReminderPrefs:
    if not isinstance(value, dict):
        return ReminderPrefs()
    base = _parse_channel(value, ChannelPrefs())
    days = value.get("days_before")
    # bool is an int subclass; reject it explicitly
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        days = DEFAULT_REMINDER_DAYS_BEFORE
    return ReminderPrefs(base.in_app, base.email, base.push, days)


def parse_notification_preferences(raw: Any) -> NotificationPreferences:
    """Parse stored JSON, applying defaults for anything missing or malformed."""
    if not isinstance(raw, dict):
        return NotificationPreferences()

    parsed: dict[str, Any] = {}
    for key in RESPONSE_KEYS:
        default = _parse_channel(raw.get(LEGACY_KEYS[key]), ChannelPrefs())
        parsed[key] = _parse_channel(raw.get(key), default)

    parsed["pending_member_registrations"] = _parse_channel(raw.get("pending_member_registrations"), ChannelPrefs())
    parsed["unfilled_positions_reminder"] = _parse_reminder(raw.get("unfilled_positions_reminder"))
    return NotificationPreferences(**parsed)


def merge_notification_preferences(current: Any, patch: dict[str, Any]) -> NotificationPreferences:
    """Apply a partial update (per key, per channel) on top of stored preferences."""
    merged = parse_notification_preferences(current).to_dict()
    for key, value in (patch or {}).items():
        if key in merged and isinstance(value, dict):
            merged[key].update(value)
    return parse_notification_preferences(merged)


def should_notify(prefs: NotificationPreferences, key: str, channel: Channel) -> bool:
    pref = getattr(prefs, key, None)
    if pref is None:
        return True
    return bool(getattr(pref, channel, True))


def should_send_unfilled_reminder(prefs: NotificationPreferences, event_date: date, today: date) -> bool:
    """True when the event is exactly `days_before` days away."""
    return (event_date - today).days == prefs.unfilled_positions_reminder.days_before
