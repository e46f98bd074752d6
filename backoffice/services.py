# backoffice/services.py
"""
Admin aggregate views: dashboard metrics, user administration, team and
idea oversight, audit log.

Every function checks the admin flag itself; views only require a login.
"""
import logging

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, Q
from rest_framework.exceptions import ValidationError

from core import constants, storage
from core.exceptions import Conflict, NotFound
from core.models import AdminLog
from core.permissions import ensure_admin
from core.services import AdminLogService
from ideas import services as idea_services
from ideas.models import Idea
from resources.models import Resource
from teams import services as team_services
from teams.models import Invitation, JoinRequest, Team
from updates.models import Update
from users import services as user_services
from users import social
from users.models import User

logger = logging.getLogger("portal.backoffice")

USER_SORT_OPTIONS = ("-date_joined", "date_joined", "name", "email")


def _flag(value):
    """
    Query-string tri-state: "true" / "false" / anything else = no filter.
    """
    if isinstance(value, bool):
        return value
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    return None


# -------------------------------------------------------------------
# Metrics
# -------------------------------------------------------------------

def metrics(admin):
    ensure_admin(admin)

    max_size = team_services.max_team_size()
    team_sizes = Team.objects.annotate(n=Count("members"))

    resources = {status: 0 for status, _ in Resource.STATUS_CHOICES}
    for row in Resource.objects.values("status").annotate(n=Count("id")):
        resources[row["status"]] = row["n"]

    return {
        "users": {
            "total": User.objects.count(),
            "verified": User.objects.filter(verified=True).count(),
        },
        "teams": {
            "total": Team.objects.count(),
            "full": team_sizes.filter(n__gte=max_size).count(),
            "pending_join_requests": JoinRequest.objects.count(),
        },
        "invitations": {
            "pending": Invitation.objects.filter(status=Invitation.STATUS_PENDING).count(),
        },
        "ideas": {"total": Idea.objects.count()},
        "resources": resources,
        "updates": {"total": Update.objects.count()},
    }


# -------------------------------------------------------------------
# Users
# -------------------------------------------------------------------

def list_users(admin, q=None, verified=None, is_admin=None, role=None, sort=None):
    ensure_admin(admin)
    sort = sort or "-date_joined"
    if sort not in USER_SORT_OPTIONS:
        raise ValidationError({"sort": [f"Must be one of {', '.join(USER_SORT_OPTIONS)}."]})

    qs = User.objects.select_related("team")
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(email__icontains=q) | Q(roll_number__icontains=q))

    verified = _flag(verified)
    if verified is not None:
        qs = qs.filter(verified=verified)
    is_admin = _flag(is_admin)
    if is_admin is not None:
        qs = qs.filter(is_admin=is_admin)
    if role:
        qs = qs.filter(role=role)

    return qs.order_by(sort, "-id")


def get_user(admin, user_id):
    ensure_admin(admin)
    try:
        return User.objects.select_related("team").get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found.")


def update_user(admin, user_id, data):
    """
    Change verified / is_admin / role / password; each change is its own
    audit entry.
    """
    user = get_user(admin, user_id)
    if not data:
        raise ValidationError({"detail": ["No valid update fields provided."]})

    entries = []
    fields = []

    if "verified" in data:
        entries.append((constants.ADMIN_USER_VERIFY, {"from": user.verified, "to": data["verified"]}))
        user.verified = data["verified"]
        fields.append("verified")

    if "is_admin" in data:
        entries.append((constants.ADMIN_USER_ADMIN_TOGGLE, {"from": user.is_admin, "to": data["is_admin"]}))
        user.is_admin = data["is_admin"]
        fields.append("is_admin")

    if "role" in data:
        entries.append((constants.ADMIN_USER_ROLE_UPDATE, {"from": user.role, "to": data["role"]}))
        user.role = data["role"]
        fields.append("role")

    if "password" in data:
        try:
            validate_password(data["password"], user)
        except DjangoValidationError as e:
            raise ValidationError({"password": list(e.messages)})
        user.set_password(data["password"])
        entries.append((constants.ADMIN_USER_PASSWORD_RESET, {}))
        fields.append("password")

    if "admin_notes" in data:
        user.admin_notes = data["admin_notes"]
        fields.append("admin_notes")

    with transaction.atomic():
        user.save(update_fields=fields + ["updated_at"])
        for action, meta in entries:
            AdminLogService.log(admin, action, constants.TARGET_USER, user.id, meta)

    return user


def _set_flag(admin, ids, field, value, action):
    ensure_admin(admin)
    matched = User.objects.filter(pk__in=ids)
    matched_count = matched.count()
    modified = matched.exclude(**{field: value}).update(**{field: value})

    AdminLogService.log(
        admin,
        action,
        constants.TARGET_USER,
        None,
        {"ids": list(ids), field: value, "matched": matched_count, "modified": modified},
    )
    return {"matched": matched_count, "modified": modified}


def bulk_verify(admin, ids, value=True):
    return _set_flag(admin, ids, "verified", value, constants.ADMIN_USER_BULK_VERIFY)


def bulk_admin(admin, ids, value=True):
    return _set_flag(admin, ids, "is_admin", value, constants.ADMIN_USER_BULK_ADMIN)


def _delete_user(admin, user):
    """
    A leader's team goes first (members are released, logo blob freed);
    the user's own join requests and invitations cascade with the row.
    """
    if user.pk == admin.pk:
        raise Conflict("You cannot delete your own account.")

    for team_id in Team.objects.filter(leader=user).values_list("id", flat=True):
        team_services.delete_team(admin, team_id, as_admin=True)

    blobs = [
        (storage.bucket_name("avatars"), user.photo_key),
        (storage.bucket_name("documents"), user.document_key),
    ]
    user.delete()

    for bucket, key in blobs:
        if key and not storage.remove_blob(bucket, key):
            logger.error(f"Orphaned blob after user delete: bucket={bucket}, key={key}")


def delete_user(admin, user_id):
    user = get_user(admin, user_id)
    email = user.email
    _delete_user(admin, user)

    AdminLogService.log(
        admin,
        constants.ADMIN_USER_DELETE,
        constants.TARGET_USER,
        int(user_id),
        {"email": email},
    )


def bulk_delete_users(admin, ids):
    ensure_admin(admin)
    deleted = []
    skipped = []

    for user in User.objects.filter(pk__in=ids):
        if user.pk == admin.pk:
            skipped.append(user.pk)
            continue
        user_id = user.pk
        _delete_user(admin, user)
        deleted.append(user_id)

    AdminLogService.log(
        admin,
        constants.ADMIN_USER_BULK_DELETE,
        constants.TARGET_USER,
        None,
        {"ids": list(ids), "deleted": deleted, "skipped": skipped},
    )
    return {"deleted": len(deleted), "skipped": skipped}


# -------------------------------------------------------------------
# Teams / ideas / logs
# -------------------------------------------------------------------

def list_teams(admin, leader=None, q=None):
    ensure_admin(admin)
    qs = team_services.list_teams(q=q)
    if leader:
        qs = qs.filter(leader_id=leader)
    return qs


def get_team(admin, team_id):
    ensure_admin(admin)
    return team_services.get_team(team_id)


def list_ideas(admin, q=None):
    ensure_admin(admin)
    return idea_services.list_ideas(q=q)


def delete_idea(admin, idea_id):
    idea_services.admin_delete_idea(admin, idea_id)


def list_logs(admin, action=None, target_type=None):
    ensure_admin(admin)
    qs = AdminLog.objects.select_related("actor")
    if action:
        qs = qs.filter(action=action)
    if target_type:
        qs = qs.filter(target_type=target_type)
    return qs.order_by("-created_at", "-id")


def social_config(admin):
    ensure_admin(admin)
    return {
        "allowed_platforms": user_services.allowed_platforms(),
        "all_platforms": list(social.ALL_PLATFORMS),
    }


def update_social_config(admin, platforms):
    user_services.set_allowed_platforms(admin, platforms)
    return social_config(admin)
