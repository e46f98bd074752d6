# users/services.py
import logging

from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import ValidationError

from core import constants, storage
from core.exceptions import NotFound
from core.models import AdminConfig
from core.permissions import ensure_admin
from core.services import AdminLogService
from core.sanitizers import sanitize_title
from . import social
from .models import User

logger = logging.getLogger("portal.users")


def directory(q=None, available=False):
    """
    Verified users, for finding people to invite.
    """
    qs = User.objects.filter(verified=True, is_active=True).select_related("team").order_by("name", "id")
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(email__icontains=q))
    if available:
        qs = qs.filter(team__isnull=True)
    return qs


def update_profile(user, data):
    fields = []
    if "name" in data:
        user.name = sanitize_title(data["name"], max_length=120)
        fields.append("name")
    if "year" in data:
        user.year = data["year"]
        fields.append("year")

    if fields:
        user.save(update_fields=fields + ["updated_at"])
        logger.info(f"Profile updated: user={user.id}, fields={fields}")
    return user


def set_photo(user, photo):
    """
    Store the new avatar, then release the previous one.
    """
    bucket = storage.bucket_name("avatars")
    descriptor = storage.upload_file(bucket, f"avatars/{user.id}", photo)

    old_key = user.photo_key
    user.photo_key = descriptor["key"]
    user.photo_url = descriptor["view_url"]
    try:
        user.save(update_fields=["photo_key", "photo_url", "updated_at"])
    except Exception:
        storage.remove_blob(bucket, descriptor["key"])
        raise

    if old_key:
        storage.remove_blob(bucket, old_key)

    logger.info(f"Profile photo replaced: user={user.id}")
    return user


def remove_photo(user):
    old_key = user.photo_key
    user.photo_key = ""
    user.photo_url = ""
    user.save(update_fields=["photo_key", "photo_url", "updated_at"])

    if old_key:
        storage.remove_blob(storage.bucket_name("avatars"), old_key)
    return user


# -------------------------------------------------------------------
# Social profiles
# -------------------------------------------------------------------

SOCIAL_CONFIG_KEY = "allowedSocialPlatforms"


def allowed_platforms():
    """
    Admin-configured subset of the known platforms; all of them when unset.
    """
    config = AdminConfig.objects.filter(key=SOCIAL_CONFIG_KEY).first()
    value = config.value if config else None
    if isinstance(value, list):
        allowed = [p for p in value if p in social.PLATFORMS]
        if allowed:
            return allowed
    return list(social.ALL_PLATFORMS)


def set_allowed_platforms(admin, platforms):
    """
    Unknown names are dropped; an empty result re-enables everything.
    """
    ensure_admin(admin)
    allowed = [p for p in social.ALL_PLATFORMS if p in set(platforms or [])] or list(social.ALL_PLATFORMS)

    with transaction.atomic():
        AdminConfig.objects.update_or_create(
            key=SOCIAL_CONFIG_KEY,
            defaults={"value": allowed, "description": "Platforms allowed for user social profiles"},
        )
        AdminLogService.log(
            admin,
            constants.ADMIN_SOCIAL_CONFIG_UPDATE,
            constants.TARGET_CONFIG,
            None,
            {"allowed_platforms": allowed},
        )
    return allowed


def visible_social_profiles(user):
    allowed = set(allowed_platforms())
    return {k: v for k, v in (user.social_profiles or {}).items() if k in allowed and v}


def update_social_profiles(user, incoming):
    """
    Replace the user's profiles. Every platform is normalized and checked
    against its URL pattern; one bad entry rejects the whole update and
    nothing is saved. Disabled platforms are cleared.
    """
    allowed = set(allowed_platforms())
    errors = {}

    unknown = sorted(set(incoming) - set(social.PLATFORMS))
    for key in unknown:
        errors[key] = ["Unknown platform."]

    profiles = {}
    for key in social.ALL_PLATFORMS:
        if key not in allowed:
            continue
        raw = (incoming.get(key) or "").strip()
        if not raw:
            continue

        url = social.normalize(key, raw)
        if len(url) > 300 or not social.is_valid(key, url):
            meta = social.PLATFORMS[key]
            errors[key] = [f"Not a valid {meta['label']} profile. Expected something like {meta['example']}."]
            continue
        profiles[key] = url

    if errors:
        raise ValidationError(errors)

    user.social_profiles = profiles
    user.save(update_fields=["social_profiles", "updated_at"])
    logger.info(f"Social profiles updated: user={user.id}, platforms={sorted(profiles)}")
    return profiles


def get_public_user(user_id):
    try:
        return User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist:
        raise NotFound("User not found.")
