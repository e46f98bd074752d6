# teams/services.py
"""
Team registry and the join-request / invitation workflow.

Every membership change runs inside ``transaction.atomic()`` holding a row
lock on the team, then on the candidate user (always team -> user). The
roster is read back from ``User.team`` under those locks, so size and
gender-balance checks see the committed state of the team they guard.
"""
import logging
import uuid

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core import storage
from core.exceptions import (
    AlreadyInTeam,
    AlreadyMember,
    CannotRemoveLeader,
    Conflict,
    GenderBalanceViolation,
    DuplicateInvitation,
    DuplicateRequest,
    LeaderMustDelete,
    NameTaken,
    NotAuthorized,
    NotFound,
    NotInTeam,
    StaleState,
    TeamFull,
    UserNoLongerAvailable,
)
from core.sanitizers import sanitize_text, sanitize_title

from .models import Invitation, JoinRequest, Team

logger = logging.getLogger("portal.teams")

User = get_user_model()

EDITABLE_FIELDS = ("name", "problem_statement_title", "problem_statement_description")


def max_team_size():
    return settings.PORTAL["TEAM_MAX_SIZE"]


def required_gender():
    return settings.PORTAL.get("GENDER_BALANCE_REQUIRED") or None


# -------------------------------------------------------------------
# Locking helpers
# -------------------------------------------------------------------

def _lock_team(team_id):
    try:
        return Team.objects.select_for_update().get(pk=team_id)
    except Team.DoesNotExist:
        raise NotFound("Team not found.")


def _lock_user(user_id):
    try:
        return User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found.")


def _ensure_leader(team, user):
    if team.leader_id != user.id:
        logger.warning(f"Refused leader-only action: team={team.id}, actor={user.id}")
        raise NotAuthorized("Only the team leader can do this.")


def _clean_name(name):
    name = sanitize_title(name, max_length=100)
    if not name:
        raise ValidationError({"name": ["Team name is required."]})
    return name


def _logo_prefix():
    return f"teams/{uuid.uuid4().hex}"


# -------------------------------------------------------------------
# Admission (shared by join approval and invitation acceptance)
# -------------------------------------------------------------------

def _prune_affiliations(user):
    """
    The user just joined a team: their requests elsewhere are dead and
    their other pending invitations are declined.
    """
    JoinRequest.objects.filter(user=user).delete()
    Invitation.objects.filter(invitee=user, status=Invitation.STATUS_PENDING).update(
        status=Invitation.STATUS_REJECTED,
        updated_at=timezone.now(),
    )


def check_admission(team, candidate):
    """
    Raises if adding ``candidate`` to ``team`` would break the roster rules.
    Caller holds the team and candidate row locks.
    """
    if candidate.team_id is not None:
        if candidate.team_id == team.id:
            raise AlreadyMember("User is already a member of this team.")
        raise UserNoLongerAvailable()

    roster = User.objects.filter(team=team)
    new_size = roster.count() + 1
    limit = max_team_size()

    if new_size > limit:
        raise TeamFull()

    gender = required_gender()
    if (
        gender
        and new_size == limit
        and candidate.gender != gender
        and not roster.filter(gender=gender).exists()
    ):
        raise GenderBalanceViolation(
            f"A team of {limit} must have at least one {gender} member."
        )


def _admit_member(team, candidate):
    check_admission(team, candidate)

    candidate.team = team
    candidate.save(update_fields=["team", "updated_at"])
    _prune_affiliations(candidate)


# -------------------------------------------------------------------
# Reads
# -------------------------------------------------------------------

def teams_queryset():
    return (
        Team.objects
        .select_related("leader")
        .annotate(
            member_count=Count("members", distinct=True),
            pending_count=Count("join_requests", distinct=True),
        )
        .order_by("-created_at")
    )


def list_teams(q=None):
    qs = teams_queryset()
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(problem_statement_title__icontains=q))
    return qs


def get_team(team_id):
    try:
        return teams_queryset().get(pk=team_id)
    except Team.DoesNotExist:
        raise NotFound("Team not found.")


def my_team(user):
    team_id = User.objects.filter(pk=user.id).values_list("team_id", flat=True).first()
    if team_id is None:
        return None
    return teams_queryset().filter(pk=team_id).first()


# -------------------------------------------------------------------
# Team registry
# -------------------------------------------------------------------

def create_team(requester, name, problem_statement_title=None, problem_statement_description=None, logo=None):
    name = _clean_name(name)

    # Cheap checks before anything touches the blob store
    if User.objects.filter(pk=requester.id, team__isnull=False).exists():
        raise AlreadyInTeam()
    if Team.objects.filter(name=name).exists():
        raise NameTaken()

    fields = {"name": name}
    if problem_statement_title:
        fields["problem_statement_title"] = sanitize_title(problem_statement_title)
    if problem_statement_description:
        fields["problem_statement_description"] = sanitize_text(problem_statement_description, max_length=5000)

    descriptor = None
    if logo is not None:
        descriptor = storage.upload_file(storage.bucket_name("logos"), _logo_prefix(), logo)
        fields["logo_key"] = descriptor["key"]
        fields["logo_url"] = descriptor["view_url"]

    try:
        with transaction.atomic():
            leader = _lock_user(requester.id)
            if leader.team_id is not None:
                raise AlreadyInTeam()
            if Team.objects.filter(name=name).exists():
                raise NameTaken()

            team = Team.objects.create(leader=leader, **fields)
            leader.team = team
            leader.save(update_fields=["team", "updated_at"])
            _prune_affiliations(leader)
    except IntegrityError:
        if descriptor:
            storage.remove_blob(storage.bucket_name("logos"), descriptor["key"])
        raise NameTaken()
    except Exception:
        if descriptor:
            storage.remove_blob(storage.bucket_name("logos"), descriptor["key"])
        raise

    logger.info(f"Team created: team={team.id}, leader={leader.id}, name={name!r}")
    return get_team(team.id)


def edit_team(requester, team_id, data, logo=None):
    unknown = set(data) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError({key: ["Unknown field."] for key in sorted(unknown)})

    changes = {}
    if "name" in data:
        changes["name"] = _clean_name(data["name"])
    if "problem_statement_title" in data:
        changes["problem_statement_title"] = sanitize_title(data["problem_statement_title"])
    if "problem_statement_description" in data:
        changes["problem_statement_description"] = sanitize_text(
            data["problem_statement_description"], max_length=5000
        )

    # Leadership is checked before uploading and again under the lock
    try:
        team = Team.objects.get(pk=team_id)
    except Team.DoesNotExist:
        raise NotFound("Team not found.")
    _ensure_leader(team, requester)

    descriptor = None
    if logo is not None:
        descriptor = storage.upload_file(storage.bucket_name("logos"), _logo_prefix(), logo)

    old_logo_key = ""
    try:
        with transaction.atomic():
            team = _lock_team(team_id)
            _ensure_leader(team, requester)

            if "name" in changes and Team.objects.filter(name=changes["name"]).exclude(pk=team.pk).exists():
                raise NameTaken()

            for field, value in changes.items():
                setattr(team, field, value)

            if descriptor:
                old_logo_key = team.logo_key
                team.logo_key = descriptor["key"]
                team.logo_url = descriptor["view_url"]

            team.save()
    except IntegrityError:
        if descriptor:
            storage.remove_blob(storage.bucket_name("logos"), descriptor["key"])
        raise NameTaken()
    except Exception:
        if descriptor:
            storage.remove_blob(storage.bucket_name("logos"), descriptor["key"])
        raise

    if old_logo_key:
        storage.remove_blob(storage.bucket_name("logos"), old_logo_key)

    logger.info(f"Team edited: team={team.id}, actor={requester.id}, fields={sorted(changes)}")
    return get_team(team.id)


def _delete_locked_team(team):
    """
    Cascade for a team whose row lock is held by the caller.
    Returns (logo_key, former member ids).
    """
    member_ids = list(User.objects.filter(team=team).values_list("id", flat=True))
    User.objects.filter(team=team).update(team=None, updated_at=timezone.now())
    logo_key = team.logo_key
    # Invitations and join requests go with the row (FK cascade)
    team.delete()
    return logo_key, member_ids


def delete_team(requester, team_id, as_admin=False):
    with transaction.atomic():
        team = _lock_team(team_id)
        if not as_admin:
            _ensure_leader(team, requester)
        deleted_id = team.id
        logo_key, member_ids = _delete_locked_team(team)

    if logo_key:
        storage.remove_blob(storage.bucket_name("logos"), logo_key)

    logger.info(
        f"Team deleted: team={deleted_id}, actor={requester.id}, "
        f"released_members={member_ids}"
    )


def remove_member(requester, team_id, member_id):
    with transaction.atomic():
        team = _lock_team(team_id)
        _ensure_leader(team, requester)

        if int(member_id) == team.leader_id:
            raise CannotRemoveLeader()

        member = _lock_user(member_id)
        if member.team_id != team.id:
            raise NotFound("User is not a member of this team.")

        member.team = None
        member.save(update_fields=["team", "updated_at"])

    logger.info(f"Member removed: team={team.id}, member={member.id}, actor={requester.id}")
    return get_team(team.id)


def leave_team(requester):
    team_id = User.objects.filter(pk=requester.id).values_list("team_id", flat=True).first()
    if team_id is None:
        raise NotInTeam()

    with transaction.atomic():
        team = _lock_team(team_id)
        user = _lock_user(requester.id)

        if user.team_id != team.id:
            raise StaleState()
        if team.leader_id == user.id:
            raise LeaderMustDelete()

        user.team = None
        user.save(update_fields=["team", "updated_at"])

    logger.info(f"Member left: team={team.id}, member={user.id}")


# -------------------------------------------------------------------
# Join requests
# -------------------------------------------------------------------

def request_join(requester, team_id):
    with transaction.atomic():
        team = _lock_team(team_id)
        user = _lock_user(requester.id)

        if user.team_id is not None:
            raise AlreadyInTeam()
        if User.objects.filter(team=team).count() >= max_team_size():
            raise TeamFull()
        if JoinRequest.objects.filter(team=team, user=user).exists():
            raise DuplicateRequest()

        JoinRequest.objects.create(team=team, user=user)

    logger.info(f"Join requested: team={team.id}, user={user.id}")
    return get_team(team.id)


def cancel_join_request(requester, team_id):
    """
    Idempotent: cancelling a request that doesn't exist is not an error.
    """
    if User.objects.filter(pk=requester.id, team_id=team_id).exists():
        raise AlreadyMember()

    deleted, _ = JoinRequest.objects.filter(team_id=team_id, user_id=requester.id).delete()
    if deleted:
        logger.info(f"Join request cancelled: team={team_id}, user={requester.id}")


def approve_join_request(leader, team_id, user_id):
    stale = False

    with transaction.atomic():
        team = _lock_team(team_id)
        _ensure_leader(team, leader)

        join_request = JoinRequest.objects.filter(team=team, user_id=user_id).first()
        candidate = _lock_user(user_id)

        if candidate.team_id is not None and candidate.team_id != team.id:
            # Joined elsewhere since requesting; drop the dead request and commit that
            if join_request is not None:
                join_request.delete()
            stale = True
        elif join_request is None:
            raise NotFound("No pending request from this user.")
        else:
            _admit_member(team, candidate)

    if stale:
        logger.warning(
            f"Stale join request pruned: team={team.id}, user={user_id}, "
            f"now_in_team={candidate.team_id}"
        )
        raise UserNoLongerAvailable()

    logger.info(f"Join request approved: team={team.id}, user={candidate.id}, actor={leader.id}")
    return get_team(team.id)


def reject_join_request(leader, team_id, user_id):
    with transaction.atomic():
        team = _lock_team(team_id)
        _ensure_leader(team, leader)
        JoinRequest.objects.filter(team=team, user_id=user_id).delete()

    logger.info(f"Join request rejected: team={team.id}, user={user_id}, actor={leader.id}")
    return get_team(team.id)


def list_join_requests(requester, team_id):
    team = get_team(team_id)
    _ensure_leader(team, requester)
    return JoinRequest.objects.filter(team=team).select_related("user")


# -------------------------------------------------------------------
# Invitations
# -------------------------------------------------------------------

def send_invitation(leader, invitee_id):
    team_id = User.objects.filter(pk=leader.id).values_list("team_id", flat=True).first()
    if team_id is None:
        raise NotInTeam("You must be in a team to invite.")

    with transaction.atomic():
        team = _lock_team(team_id)
        _ensure_leader(team, leader)

        invitee = _lock_user(invitee_id)
        if invitee.team_id == team.id:
            raise AlreadyMember("User is already a member of this team.")
        if invitee.team_id is not None:
            raise AlreadyInTeam("User is already in a team.")
        if User.objects.filter(team=team).count() >= max_team_size():
            raise TeamFull()
        if Invitation.objects.filter(
            team=team, invitee=invitee, status=Invitation.STATUS_PENDING
        ).exists():
            raise DuplicateInvitation()

        invitation = Invitation.objects.create(team=team, inviter=leader, invitee=invitee)

    logger.info(f"Invitation sent: team={team.id}, invitee={invitee.id}, inviter={leader.id}")
    return invitation


def _pending_invitation_for(invitation_id, invitee):
    invitation = Invitation.objects.filter(
        pk=invitation_id,
        invitee_id=invitee.id,
        status=Invitation.STATUS_PENDING,
    ).first()
    if invitation is None:
        raise NotFound("Invitation not found.")
    return invitation


def accept_invitation(requester, invitation_id):
    invitation = _pending_invitation_for(invitation_id, requester)

    with transaction.atomic():
        team = _lock_team(invitation.team_id)
        invitation = Invitation.objects.select_for_update().filter(
            pk=invitation.pk, status=Invitation.STATUS_PENDING
        ).first()
        if invitation is None:
            raise StaleState("This invitation is no longer pending.")

        invitee = _lock_user(requester.id)
        if invitee.team_id is not None:
            raise AlreadyInTeam()

        invitation.status = Invitation.STATUS_ACCEPTED
        invitation.save(update_fields=["status", "updated_at"])
        _admit_member(team, invitee)

    logger.info(f"Invitation accepted: invitation={invitation.id}, team={team.id}, user={invitee.id}")
    return get_team(team.id)


def reject_invitation(requester, invitation_id):
    invitation = _pending_invitation_for(invitation_id, requester)

    with transaction.atomic():
        _lock_team(invitation.team_id)
        invitation = Invitation.objects.select_for_update().filter(
            pk=invitation.pk, status=Invitation.STATUS_PENDING
        ).first()
        if invitation is None:
            raise StaleState("This invitation is no longer pending.")
        invitation.status = Invitation.STATUS_REJECTED
        invitation.save(update_fields=["status", "updated_at"])

    logger.info(f"Invitation rejected: invitation={invitation.id}, user={requester.id}")
    return invitation


def cancel_invitation(requester, invitation_id):
    invitation = Invitation.objects.filter(pk=invitation_id).first()
    if invitation is None:
        raise NotFound("Invitation not found.")

    with transaction.atomic():
        team = _lock_team(invitation.team_id)
        _ensure_leader(team, requester)

        invitation = Invitation.objects.select_for_update().filter(pk=invitation_id).first()
        if invitation is None:
            raise NotFound("Invitation not found.")
        if invitation.status != Invitation.STATUS_PENDING:
            raise Conflict("Only pending invitations can be cancelled.")
        invitation.delete()

    logger.info(f"Invitation cancelled: invitation={invitation_id}, team={team.id}, actor={requester.id}")


def list_my_invitations(user):
    return (
        Invitation.objects
        .filter(invitee_id=user.id, status=Invitation.STATUS_PENDING)
        .select_related("team", "inviter", "invitee")
    )


def count_my_invitations(user):
    return Invitation.objects.filter(invitee_id=user.id, status=Invitation.STATUS_PENDING).count()


def list_team_invitations(requester, team_id, status=None):
    team = get_team(team_id)
    _ensure_leader(team, requester)

    qs = Invitation.objects.filter(team=team).select_related("team", "inviter", "invitee")
    if status:
        qs = qs.filter(status=status)
    return qs
