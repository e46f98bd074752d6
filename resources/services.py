# resources/services.py
"""
Resource moderation: submission, public/admin listings, approve/reject,
edits and deletes (single and bulk).

Blob-store rules:
- uploads happen before the row is written; a failed write releases the blob
- a failed upload is fatal (StorageFailure), nothing is written
- releasing a blob on delete is best effort and reported, never fatal
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from rest_framework.exceptions import ValidationError

from core import constants, storage
from core.exceptions import InvalidSubmission, NotAuthorized, NotFound
from core.permissions import ensure_admin, is_portal_admin
from core.sanitizers import parse_tags, sanitize_text, sanitize_title
from core.services import AdminLogService

from .models import Resource
from .state_machine import transition

logger = logging.getLogger("portal.resources")

SORT_OPTIONS = ("-created_at", "created_at", "title", "-title")
EDITABLE_FIELDS = ("title", "description")


def _bucket():
    return storage.bucket_name("resources")


def _get(resource_id, lock=False):
    qs = Resource.objects.select_for_update() if lock else Resource.objects
    try:
        return qs.get(pk=resource_id)
    except Resource.DoesNotExist:
        raise NotFound("Resource not found.")


# -------------------------------------------------------------------
# Submission
# -------------------------------------------------------------------

def submit(requester, data, file=None):
    """
    Create a pending resource from a link or an uploaded file (never both).
    """
    url = (data.get("url") or "").strip()
    if bool(url) == bool(file):
        logger.warning(f"Resource submission refused: user={requester.id}, url={bool(url)}, file={bool(file)}")
        raise InvalidSubmission("Provide exactly one of a link or a file.")

    title = sanitize_title(data.get("title"), max_length=200)
    category = sanitize_title(data.get("category"), max_length=100)
    errors = {}
    if not title:
        errors["title"] = ["This field is required."]
    if not category:
        errors["category"] = ["This field is required."]
    if file is not None and file.size > settings.PORTAL["RESOURCE_MAX_UPLOAD_BYTES"]:
        errors["file"] = ["File is too large."]
    if errors:
        raise ValidationError(errors)

    fields = {
        "title": title,
        "category": category,
        "description": sanitize_text(data.get("description"), max_length=5000),
        "tags": parse_tags(data.get("tags")),
        "added_by": requester,
        "status": Resource.STATUS_PENDING,
    }

    if url:
        fields["url"] = url
        resource = Resource.objects.create(**fields)
    else:
        descriptor = storage.upload_file(_bucket(), "resources", file)
        fields.update(
            file_key=descriptor["key"],
            file_url=descriptor["view_url"],
            file_download_url=descriptor["download_url"],
            file_name=descriptor["original_name"],
            file_mime_type=descriptor["mime_type"],
            file_size=descriptor["size"],
        )
        try:
            resource = Resource.objects.create(**fields)
        except Exception:
            storage.remove_blob(_bucket(), descriptor["key"])
            raise

    logger.info(
        f"Resource submitted: resource={resource.id}, user={requester.id}, "
        f"kind={'file' if resource.file_key else 'link'}"
    )
    return resource


# -------------------------------------------------------------------
# Listings
# -------------------------------------------------------------------

def list_resources(status=None, q=None, category=None, sort=None, search_urls=False, added_by=None):
    sort = sort or "-created_at"
    if sort not in SORT_OPTIONS:
        raise ValidationError({"sort": [f"Must be one of {', '.join(SORT_OPTIONS)}."]})
    if status and status not in dict(Resource.STATUS_CHOICES):
        raise ValidationError({"status": ["Unknown status."]})

    qs = Resource.objects.select_related("added_by", "approved_by")
    if status:
        qs = qs.filter(status=status)
    if category:
        qs = qs.filter(category=category)
    if added_by is not None:
        qs = qs.filter(added_by=added_by)
    if q:
        search = Q(title__icontains=q) | Q(description__icontains=q)
        if search_urls:
            search |= Q(url__icontains=q)
        qs = qs.filter(search)

    return qs.order_by(sort, "-id")


def public_resources(q=None, category=None, sort=None):
    return list_resources(status=Resource.STATUS_APPROVED, q=q, category=category, sort=sort)


def admin_resources(admin, status=None, q=None, category=None, sort=None):
    ensure_admin(admin)
    return list_resources(status=status, q=q, category=category, sort=sort, search_urls=True)


def categories():
    return sorted(
        Resource.objects
        .filter(status=Resource.STATUS_APPROVED)
        .values_list("category", flat=True)
        .distinct()
    )


def counts(admin):
    ensure_admin(admin)
    result = {status: 0 for status, _ in Resource.STATUS_CHOICES}
    for row in Resource.objects.values("status").annotate(n=Count("id")):
        result[row["status"]] = row["n"]
    return result


def approved_file(resource_id):
    """
    Public blob lookup for /view and /download.
    """
    resource = Resource.objects.filter(
        pk=resource_id, status=Resource.STATUS_APPROVED
    ).exclude(file_key="").first()
    if resource is None:
        raise NotFound("File not found.")
    return resource


# -------------------------------------------------------------------
# Moderation
# -------------------------------------------------------------------

def approve(admin, resource_id):
    ensure_admin(admin)

    with transaction.atomic():
        resource = _get(resource_id, lock=True)
        old_status = transition(resource, Resource.STATUS_APPROVED, actor=admin)
        resource.approved_by = admin
        resource.rejection_reason = ""
        resource.save(update_fields=["status", "approved_by", "rejection_reason", "updated_at"])

        AdminLogService.log(
            admin,
            constants.ADMIN_RESOURCE_APPROVE,
            constants.TARGET_RESOURCE,
            resource.id,
            {"from": old_status},
        )
    return resource


def reject(admin, resource_id, reason=""):
    ensure_admin(admin)

    with transaction.atomic():
        resource = _get(resource_id, lock=True)
        old_status = transition(resource, Resource.STATUS_REJECTED, actor=admin)
        resource.rejection_reason = sanitize_text(reason, max_length=2000)
        resource.approved_by = None
        resource.save(update_fields=["status", "approved_by", "rejection_reason", "updated_at"])

        AdminLogService.log(
            admin,
            constants.ADMIN_RESOURCE_REJECT,
            constants.TARGET_RESOURCE,
            resource.id,
            {"from": old_status, "reason": resource.rejection_reason},
        )
    return resource


def update(actor, resource_id, data):
    """
    Title/description edits. Admins always; the submitter while pending.
    """
    unknown = set(data) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError({key: ["This field cannot be edited."] for key in sorted(unknown)})

    is_admin = is_portal_admin(actor)

    with transaction.atomic():
        resource = _get(resource_id, lock=True)

        if not is_admin:
            if resource.added_by_id != actor.id:
                raise NotAuthorized("You can only edit your own submissions.")
            if resource.status != Resource.STATUS_PENDING:
                raise NotAuthorized("Submissions can only be edited while pending review.")

        changed = []
        if "title" in data:
            title = sanitize_title(data["title"], max_length=200)
            if not title:
                raise ValidationError({"title": ["This field may not be blank."]})
            resource.title = title
            changed.append("title")
        if "description" in data:
            resource.description = sanitize_text(data["description"], max_length=5000)
            changed.append("description")

        if changed:
            resource.save(update_fields=changed + ["updated_at"])

        if is_admin:
            AdminLogService.log(
                actor,
                constants.ADMIN_RESOURCE_UPDATE,
                constants.TARGET_RESOURCE,
                resource.id,
                {"fields": changed},
            )

    logger.info(f"Resource edited: resource={resource.id}, actor={actor.id}, fields={changed}")
    return resource


def delete(admin, resource_id):
    """
    Returns {"deleted": True, "file_released": bool | None}; None when the
    resource had no file.
    """
    ensure_admin(admin)

    with transaction.atomic():
        resource = _get(resource_id, lock=True)
        file_key = resource.file_key
        deleted_id = resource.id
        resource.delete()

        AdminLogService.log(
            admin,
            constants.ADMIN_RESOURCE_DELETE,
            constants.TARGET_RESOURCE,
            deleted_id,
            {"file_key": file_key},
        )

    file_released = None
    if file_key:
        file_released = storage.remove_blob(_bucket(), file_key)
        if not file_released:
            logger.error(f"Orphaned blob after delete: resource={deleted_id}, key={file_key}")

    return {"deleted": True, "file_released": file_released}


def bulk_delete(admin, ids):
    """
    Each id is handled on its own; a missing id doesn't stop the others.
    """
    ensure_admin(admin)

    ids = list(dict.fromkeys(ids))
    deleted = []
    not_found = []
    file_keys = []

    for resource_id in ids:
        with transaction.atomic():
            resource = Resource.objects.select_for_update().filter(pk=resource_id).first()
            if resource is None:
                not_found.append(resource_id)
                continue
            if resource.file_key:
                file_keys.append(resource.file_key)
            resource.delete()
            deleted.append(resource_id)

    files_failed = 0
    if file_keys and not storage.remove_blobs(_bucket(), file_keys):
        files_failed = len(file_keys)
        logger.error(f"Orphaned blobs after bulk delete: keys={file_keys}")

    AdminLogService.log(
        admin,
        constants.ADMIN_RESOURCE_BULK_DELETE,
        constants.TARGET_RESOURCE,
        None,
        {"deleted": deleted, "not_found": not_found},
    )

    return {
        "requested": len(ids),
        "deleted": len(deleted),
        "not_found": not_found,
        "files_attempted": len(file_keys),
        "files_failed": files_failed,
    }
