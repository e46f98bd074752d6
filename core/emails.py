# core/emails.py
import logging

from django.conf import settings
from django.core.mail import send_mass_mail

logger = logging.getLogger("portal.emails")


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def notify(recipients, subject, message, batch_size=None):
    """
    Send one plain-text message to many recipients.

    Each batch goes out over a single connection, one message per
    recipient so addresses are never exposed to each other.
    Returns the number of messages the backend accepted.
    """
    recipients = sorted({r for r in recipients if r})
    if not recipients:
        return 0

    batch_size = batch_size or settings.PORTAL["UPDATES_EMAILS_BATCH_SIZE"]
    from_email = getattr(settings, "DEFAULT_FROM_EMAIL", None)
    sent = 0

    for batch in chunked(recipients, batch_size):
        datatuple = [(subject, message, from_email, [email]) for email in batch]
        sent += send_mass_mail(datatuple, fail_silently=True)
        logger.info(f"Notification batch sent: subject={subject!r}, size={len(batch)}")

    return sent
