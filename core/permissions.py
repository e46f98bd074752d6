# core/permissions.py
"""
Capability checks used inside the services.

Views only require authentication; whether the principal may perform the
operation is decided here, once per operation, so the rules are testable
without going through routing.
"""
from core.exceptions import NotAuthorized


def is_portal_admin(user) -> bool:
    """
    Global admin flag. Superusers are always admins.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False

    if getattr(user, "is_superuser", False):
        return True

    return bool(getattr(user, "is_admin", False))


def ensure_admin(user):
    if not is_portal_admin(user):
        raise NotAuthorized("Admin privileges are required for this action.")
