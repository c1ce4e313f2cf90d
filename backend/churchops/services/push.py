from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from churchops.core.config import settings

log = logging.getLogger("churchops.push")


def send_push_to_user(profile_id: int, *, title: str, body: str, data: dict[str, Any] | None = None) -> bool:
    """Best-effort push via the push relay service.

    The relay owns device tokens and per-device opt-out. Returns True if the
    relay accepted the message, else False. Never raises.
    """
    svc_url = settings.PUSH_SERVICE_URL
    if not svc_url:
        log.warning("push skipped: no PUSH_SERVICE_URL (profile_id=%s)", profile_id)
        return False

    payload = json.dumps(
        {"user_id": int(profile_id), "title": title, "body": body, "data": data or {}},
        ensure_ascii=False,
    ).encode("utf-8")
    secret = settings.PUSH_SERVICE_SECRET
    req = urllib.request.Request(
        svc_url.rstrip("/") + "/send",
        data=payload,
        method="POST",
        headers={
            "Content-Type": "application/json",
            **({"X-Push-Secret": secret} if secret else {}),
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            resp_body = resp.read().decode("utf-8", errors="ignore")
            if 200 <= resp.status < 300:
                if not resp_body:
                    return True
                try:
                    return bool(json.loads(resp_body).get("ok", True))
                except ValueError:
                    return True
            log.warning("push failed status=%s body=%s", resp.status, resp_body[:300])
            return False
    except (urllib.error.URLError, OSError) as e:
        log.exception("push exception profile_id=%s: %s", profile_id, e)
        return False
