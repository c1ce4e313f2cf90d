from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from churchops.core.config import settings

log = logging.getLogger("churchops.mailer")


def send_email(to: str, subject: str, body: str) -> bool:
    """Best-effort plain-text email over SMTP.

    Returns True if the message was handed to the server, else False. Never raises.
    """
    if not settings.smtp_configured():
        log.warning("email skipped: SMTP not configured (to=%s)", to)
        return False
    if not to:
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
        return True
    except (smtplib.SMTPException, OSError) as e:
        log.exception("email send failed to=%s: %s", to, e)
        return False
