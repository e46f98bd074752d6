from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied
from django.http import Http404
import logging

logger = logging.getLogger("portal.api")


# -------------------------------------------------------------------
# Domain error taxonomy
# -------------------------------------------------------------------
# 403 -> "you can't do this", 409 -> "this can't happen right now",
# 409 + stale_state* -> "try again, something changed".


class NotAuthorized(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = "not_authorized"


class NotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidSubmission(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid submission."
    default_code = "invalid_submission"


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This action conflicts with the current state."
    default_code = "conflict"


class AlreadyInTeam(Conflict):
    default_detail = "You are already in a team."
    default_code = "already_in_team"


class NameTaken(Conflict):
    default_detail = "Team name is already taken."
    default_code = "name_taken"


class TeamFull(Conflict):
    default_detail = "This team is already full."
    default_code = "team_full"


class GenderBalanceViolation(Conflict):
    default_detail = "A team of 6 must have at least one female member."
    default_code = "gender_balance"


class DuplicateRequest(Conflict):
    default_detail = "You have already sent a request to join this team."
    default_code = "duplicate_request"


class DuplicateInvitation(Conflict):
    default_detail = "Invitation already sent to this user."
    default_code = "duplicate_invitation"


class AlreadyMember(Conflict):
    default_detail = "You are already a member of this team."
    default_code = "already_member"


class CannotRemoveLeader(Conflict):
    default_detail = "Team leader cannot remove themselves; delete the team instead."
    default_code = "cannot_remove_leader"


class LeaderMustDelete(Conflict):
    default_detail = "Team leader cannot leave; you must delete the team instead."
    default_code = "leader_must_delete"


class NotInTeam(Conflict):
    default_detail = "You are not in a team."
    default_code = "not_in_team"


class AccountNotVerified(NotAuthorized):
    default_detail = "Your account is awaiting verification by an admin."
    default_code = "not_verified"


class StaleState(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Something changed while processing your request. Refresh and try again."
    default_code = "stale_state"


class UserNoLongerAvailable(StaleState):
    default_detail = "User is no longer available to join. Refresh and try again."
    default_code = "user_no_longer_available"


class StorageFailure(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "File storage is unavailable. Please try again later."
    default_code = "storage_failure"


def _error_code(exc):
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    codes = getattr(exc, "get_codes", None)
    if codes is None:
        return "error"
    value = codes()
    if isinstance(value, str):
        return value
    # field-level validation errors come back as a dict/list of codes
    return "invalid"


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "code": _error_code(exc),
                "errors": response.data,
            },
            status=response.status_code,
            headers={
                header: response[header]
                for header in ("WWW-Authenticate", "Retry-After")
                if response.has_header(header)
            },
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "code": "server_error",
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
