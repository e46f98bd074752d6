# updates/services.py
"""
Updates: public listing, admin curation, feeder ingestion and the
"new update" notification emails.

Ingestion contract:
- every candidate is identified by sha256(title|url|published_at) within
  its source; known hashes are skipped
- each pass is recorded as an UpdateRun
- inserted public items are announced by email after commit
"""
import hashlib
import logging
from datetime import datetime, time, timezone as dt_timezone

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from django.utils.module_loading import import_string
from rest_framework.exceptions import ValidationError

from core import constants
from core.emails import notify
from core.exceptions import Conflict, NotFound
from core.permissions import ensure_admin
from core.sanitizers import sanitize_text, sanitize_title
from core.services import AdminLogService
from users.models import User

from .models import Update, UpdateRun

logger = logging.getLogger("portal.updates")

ADMIN_SORT_OPTIONS = ("-published_at", "published_at", "-created_at", "title")
EDITABLE_FIELDS = ("title", "url", "summary", "published_at", "pinned", "is_public")


def _published_key(published_at):
    # canonical UTC so the same instant always hashes the same
    return published_at.astimezone(dt_timezone.utc).isoformat() if published_at else ""


def content_hash(title, url, published_at=None) -> str:
    raw = f"{title}|{url}|{_published_key(published_at)}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def parse_published_at(value):
    """
    datetime, ISO datetime string or ISO date string -> aware datetime.
    Anything unparseable becomes None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        value = str(value).strip()
        parsed = parse_datetime(value)
        if parsed is None:
            try:
                day = parse_date(value)
            except ValueError:
                day = None
            if day is None:
                return None
            parsed = datetime.combine(day, time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _get(update_id):
    try:
        return Update.objects.get(pk=update_id)
    except Update.DoesNotExist:
        raise NotFound("Update not found.")


# -------------------------------------------------------------------
# Listings
# -------------------------------------------------------------------

def _newest_first(qs):
    return qs.order_by(
        F("published_at").desc(nulls_last=True),
        "-created_at",
        "-id",
    )


def public_updates(q=None, pinned_only=False):
    """
    Public items, pinned first, then newest.
    """
    qs = Update.objects.filter(is_public=True)
    if q:
        qs = qs.filter(title__icontains=q)
    if pinned_only:
        qs = qs.filter(pinned=True)
    return qs.order_by(
        "-pinned",
        F("published_at").desc(nulls_last=True),
        "-created_at",
        "-id",
    )


def admin_updates(admin, q=None, sort=None):
    ensure_admin(admin)
    sort = sort or "-published_at"
    if sort not in ADMIN_SORT_OPTIONS:
        raise ValidationError({"sort": [f"Must be one of {', '.join(ADMIN_SORT_OPTIONS)}."]})

    qs = Update.objects.all()
    if q:
        qs = qs.filter(Q(title__icontains=q) | Q(summary__icontains=q))
    if sort == "-published_at":
        return _newest_first(qs)
    if sort == "published_at":
        return qs.order_by(F("published_at").asc(nulls_last=True), "created_at", "id")
    return qs.order_by(sort, "-id")


def recent_runs(admin, limit=20):
    ensure_admin(admin)
    return UpdateRun.objects.order_by("-started_at", "-id")[:limit]


# -------------------------------------------------------------------
# Admin curation
# -------------------------------------------------------------------

def _apply_fields(update, data):
    changed = []
    if "title" in data:
        title = sanitize_title(data["title"], max_length=300)
        if not title:
            raise ValidationError({"title": ["This field may not be blank."]})
        update.title = title
        changed.append("title")
    if "url" in data:
        update.url = (data["url"] or "").strip()
        changed.append("url")
    if "summary" in data:
        update.summary = sanitize_text(data["summary"], max_length=5000)
        changed.append("summary")
    if "published_at" in data:
        update.published_at = parse_published_at(data["published_at"])
        changed.append("published_at")
    for flag in ("pinned", "is_public"):
        if flag in data:
            setattr(update, flag, bool(data[flag]))
            changed.append(flag)
    return changed


def create_update(admin, data):
    ensure_admin(admin)
    if not sanitize_title(data.get("title")):
        raise ValidationError({"title": ["This field is required."]})

    update = Update(source=Update.SOURCE_ADMIN)
    _apply_fields(update, data)
    if update.published_at is None:
        update.published_at = timezone.now()
    update.hash = content_hash(update.title, update.url, update.published_at)

    if Update.objects.filter(source=update.source, hash=update.hash).exists():
        raise Conflict("An identical update already exists.")
    update.save()

    AdminLogService.log(
        admin,
        constants.ADMIN_UPDATE_CREATE,
        constants.TARGET_UPDATE,
        update.id,
        {"title": update.title},
    )
    return update


def edit_update(admin, update_id, data):
    ensure_admin(admin)
    unknown = set(data) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError({key: ["This field cannot be edited."] for key in sorted(unknown)})

    update = _get(update_id)
    changed = _apply_fields(update, data)
    if changed:
        update.save(update_fields=changed + ["updated_at"])

    AdminLogService.log(
        admin,
        constants.ADMIN_UPDATE_EDIT,
        constants.TARGET_UPDATE,
        update.id,
        {"fields": changed},
    )
    return update


def delete_update(admin, update_id):
    ensure_admin(admin)
    update = _get(update_id)
    title = update.title
    update.delete()

    AdminLogService.log(
        admin,
        constants.ADMIN_UPDATE_DELETE,
        constants.TARGET_UPDATE,
        int(update_id),
        {"title": title},
    )


def admin_notify(admin, ids):
    """
    Email every verified user about the given public updates.
    """
    ensure_admin(admin)
    items = list(Update.objects.filter(pk__in=ids, is_public=True).values_list("id", flat=True))
    if not items:
        raise NotFound("No matching public updates.")

    sent = notify_users(items)

    AdminLogService.log(
        admin,
        constants.ADMIN_UPDATE_NOTIFY,
        constants.TARGET_UPDATE,
        None,
        {"ids": items, "emails_sent": sent},
    )
    return {"notified": len(items), "emails_sent": sent}


# -------------------------------------------------------------------
# Notifications
# -------------------------------------------------------------------

def notification_content(updates):
    subject = "New update(s) published"
    lines = [f"• {u.title} - {u.url}" if u.url else f"• {u.title}" for u in updates]
    return subject, "New updates:\n" + "\n".join(lines)


def notify_users(update_ids):
    """
    Returns the number of emails handed to the mail backend.
    """
    if not settings.PORTAL["UPDATES_EMAILS_ENABLED"]:
        logger.info("Update emails disabled; skipping notification")
        return 0

    updates = list(_newest_first(Update.objects.filter(pk__in=update_ids, is_public=True)))
    if not updates:
        return 0

    recipients = (
        User.objects
        .filter(verified=True, is_active=True)
        .exclude(email="")
        .values_list("email", flat=True)
    )
    subject, message = notification_content(updates)
    sent = notify(list(recipients), subject, message)

    logger.info(f"Update notification sent: updates={[u.id for u in updates]}, emails={sent}")
    return sent


def dispatch_notification(update_ids):
    """
    Queue the notification task; send inline when the broker is unreachable.
    """
    from .tasks import notify_new_updates

    try:
        notify_new_updates.delay(list(update_ids))
    except Exception as e:
        logger.warning(f"Could not queue update notification, sending inline: {e}")
        notify_users(update_ids)


# -------------------------------------------------------------------
# Ingestion
# -------------------------------------------------------------------

def _normalize(candidate):
    title = sanitize_title(candidate.get("title"), max_length=300)
    if not title:
        return None
    return {
        "title": title,
        "url": (candidate.get("url") or "").strip()[:2048],
        "summary": sanitize_text(candidate.get("summary"), max_length=5000),
        "published_at": parse_published_at(candidate.get("published_at")),
    }


def _finish_run(run, ok, fetched=0, inserted=0, error=""):
    run.ok = ok
    run.items_fetched = fetched
    run.items_inserted = inserted
    run.error_message = error[:2000]
    run.finished_at = timezone.now()
    run.save()
    return run


def ingest_candidates(candidates, source=None, run=None):
    """
    Insert candidates whose hash is new for ``source``.

    Returns {"ok", "run", "fetched", "inserted", "ids"}.
    """
    source = source or settings.PORTAL["UPDATES_FEEDER_SOURCE"]
    candidates = list(candidates)
    if run is None:
        run = UpdateRun.objects.create(source=source)

    inserted_ids = []
    seen = set()
    with transaction.atomic():
        for candidate in candidates:
            fields = _normalize(candidate)
            if fields is None:
                continue
            digest = content_hash(fields["title"], fields["url"], fields["published_at"])
            if digest in seen:
                continue
            seen.add(digest)

            update, created = Update.objects.get_or_create(source=source, hash=digest, defaults=fields)
            if created:
                inserted_ids.append(update.id)

        _finish_run(run, ok=True, fetched=len(candidates), inserted=len(inserted_ids))

        if inserted_ids:
            transaction.on_commit(lambda: dispatch_notification(inserted_ids))

    logger.info(
        f"Updates ingested: source={source}, run={run.id}, "
        f"fetched={len(candidates)}, inserted={len(inserted_ids)}"
    )
    return {
        "ok": True,
        "run": run.id,
        "fetched": len(candidates),
        "inserted": len(inserted_ids),
        "ids": inserted_ids,
    }


def run_feeder(source=None):
    """
    Load the configured feeder callable and ingest what it returns.

    A failing feeder is recorded on the run and reported, not raised.
    """
    path = settings.PORTAL["UPDATES_FEEDER"]
    if not path:
        logger.info("No update feeder configured; skipping run")
        return {"ok": False, "run": None, "fetched": 0, "inserted": 0, "ids": [], "error": "No feeder configured."}

    source = source or settings.PORTAL["UPDATES_FEEDER_SOURCE"]
    feeder = import_string(path)
    run = UpdateRun.objects.create(source=source)

    try:
        candidates = list(feeder())
    except Exception as e:
        logger.exception(f"Update feeder failed: feeder={path}, run={run.id}")
        _finish_run(run, ok=False, error=str(e))
        return {"ok": False, "run": run.id, "fetched": 0, "inserted": 0, "ids": [], "error": str(e)}

    return ingest_candidates(candidates, source=source, run=run)
