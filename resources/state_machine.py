# resources/state_machine.py
"""
Moderation state machine for submitted resources.

pending -> approved | rejected
approved -> rejected
rejected -> approved

Re-applying the current status is allowed (approve twice is harmless).
Any transition not in VALID_TRANSITIONS is rejected.
"""
from typing import Tuple
import logging

from core.exceptions import Conflict
from .models import Resource

logger = logging.getLogger('portal.resources')


VALID_TRANSITIONS = {
    Resource.STATUS_PENDING: [Resource.STATUS_APPROVED, Resource.STATUS_REJECTED],
    Resource.STATUS_APPROVED: [Resource.STATUS_REJECTED],
    Resource.STATUS_REJECTED: [Resource.STATUS_APPROVED],
}


def can_transition(resource: Resource, new_status: str) -> Tuple[bool, str]:
    """
    Check if a resource can move to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = resource.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Resource.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    allowed = VALID_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def transition(resource: Resource, new_status: str, actor=None) -> str:
    """
    Move a resource to ``new_status`` (in memory; the caller saves).

    Returns the previous status. Raises Conflict for a disallowed move.
    """
    can, reason = can_transition(resource, new_status)

    if not can:
        logger.warning(
            f"Invalid state transition attempted: resource={resource.id}, "
            f"from={resource.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        raise Conflict(reason)

    old_status = resource.status
    resource.status = new_status

    logger.info(
        f"Resource state transition: resource={resource.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )
    return old_status
