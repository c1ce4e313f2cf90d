from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request

from churchops.core.config import settings

log = logging.getLogger("churchops.calendar_sync")


def sync_event(event_id: int) -> bool:
    """Ask the calendar sync worker to push an event to connected calendars.

    Best-effort: returns False on any failure, never raises.
    """
    url = settings.CALENDAR_SYNC_URL
    if not url:
        log.debug("calendar sync skipped: no CALENDAR_SYNC_URL (event_id=%s)", event_id)
        return False

    req = urllib.request.Request(
        url.rstrip("/") + "/sync",
        data=json.dumps({"event_id": int(event_id)}).encode("utf-8"),
        method="POST",
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            if 200 <= resp.status < 300:
                return True
            log.warning("calendar sync failed event_id=%s status=%s", event_id, resp.status)
            return False
    except (urllib.error.URLError, OSError) as e:
        log.exception("calendar sync exception event_id=%s: %s", event_id, e)
        return False
