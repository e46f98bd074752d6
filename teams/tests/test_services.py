from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.exceptions import ValidationError

from core.exceptions import (
    AlreadyInTeam,
    AlreadyMember,
    CannotRemoveLeader,
    Conflict,
    DuplicateInvitation,
    DuplicateRequest,
    GenderBalanceViolation,
    LeaderMustDelete,
    NameTaken,
    NotAuthorized,
    NotFound,
    NotInTeam,
    StaleState,
    TeamFull,
    UserNoLongerAvailable,
)
from teams import services
from teams.models import Invitation, JoinRequest, Team


User = get_user_model()


def make_user(email, gender="male", **extra):
    return User.objects.create_user(
        username=email,
        email=email,
        password="pass1234",
        gender=gender,
        verified=True,
        **extra,
    )


def add_members(team, count, gender="male", prefix="member"):
    users = []
    for i in range(count):
        user = make_user(f"{prefix}{i}-{team.id}@example.com", gender=gender)
        user.team = team
        user.save()
        users.append(user)
    return users


def assert_team_invariants(testcase):
    for team in Team.objects.all():
        members = User.objects.filter(team=team)
        testcase.assertGreaterEqual(members.count(), 1)
        testcase.assertLessEqual(members.count(), 6)
        testcase.assertTrue(members.filter(pk=team.leader_id).exists())
        if members.count() == 6:
            testcase.assertTrue(members.filter(gender="female").exists())
    for request in JoinRequest.objects.select_related("user"):
        testcase.assertIsNone(request.user.team_id)


class TeamRegistryTests(TestCase):
    def setUp(self):
        self.leader = make_user("leader@example.com")
        self.team = services.create_team(self.leader, "Alpha", problem_statement_title="Smart Campus")

    def test_create_team_makes_requester_leader_and_sole_member(self):
        self.leader.refresh_from_db()

        self.assertEqual(self.team.leader_id, self.leader.id)
        self.assertEqual(self.leader.team_id, self.team.id)
        self.assertEqual(self.team.member_count, 1)
        self.assertEqual(self.team.problem_statement_title, "Smart Campus")
        self.assertEqual(self.team.problem_statement_description, "No description provided yet.")

    def test_create_team_refuses_user_already_in_team(self):
        with self.assertRaises(AlreadyInTeam):
            services.create_team(self.leader, "Beta")

    def test_create_team_refuses_taken_name(self):
        other = make_user("other@example.com")
        with self.assertRaises(NameTaken):
            services.create_team(other, "Alpha")

        other.refresh_from_db()
        self.assertIsNone(other.team_id)

    def test_team_names_are_case_sensitive(self):
        other = make_user("other@example.com")
        team = services.create_team(other, "alpha")
        self.assertEqual(team.name, "alpha")

    def test_create_team_requires_name(self):
        other = make_user("other@example.com")
        with self.assertRaises(ValidationError):
            services.create_team(other, "   ")
        self.assertEqual(Team.objects.count(), 1)

    def test_create_team_prunes_creators_requests_and_invitations(self):
        other = make_user("other@example.com")
        services.request_join(other, self.team.id)
        services.send_invitation(self.leader, other.id)

        services.create_team(other, "Beta")

        self.assertFalse(JoinRequest.objects.filter(user=other).exists())
        self.assertFalse(
            Invitation.objects.filter(invitee=other, status=Invitation.STATUS_PENDING).exists()
        )

    @mock.patch("core.storage.remove_blobs", return_value=True)
    @mock.patch("core.storage.upload_file")
    def test_failed_create_releases_uploaded_logo(self, upload_file, remove_blobs):
        upload_file.return_value = {"key": "teams/x/logo.png", "view_url": "https://cdn/logo.png"}
        busy = make_user("busy@example.com")
        logo = SimpleUploadedFile("logo.png", b"png", content_type="image/png")

        with mock.patch("teams.services.Team.objects.create", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                services.create_team(busy, "Gamma", logo=logo)

        remove_blobs.assert_called_once_with("team-logos", ["teams/x/logo.png"])

    def test_edit_team_is_leader_only(self):
        member = add_members(self.team, 1)[0]

        with self.assertRaises(NotAuthorized):
            services.edit_team(member, self.team.id, {"name": "Hijacked"})

        self.team.refresh_from_db()
        self.assertEqual(self.team.name, "Alpha")

    def test_edit_team_renames_and_rechecks_uniqueness(self):
        services.create_team(make_user("b@example.com"), "Beta")

        with self.assertRaises(NameTaken):
            services.edit_team(self.leader, self.team.id, {"name": "Beta"})

        team = services.edit_team(self.leader, self.team.id, {"name": "Alpha Prime"})
        self.assertEqual(team.name, "Alpha Prime")

    def test_edit_team_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError):
            services.edit_team(self.leader, self.team.id, {"leader": 99})

    @mock.patch("core.storage.remove_blobs", return_value=True)
    @mock.patch("core.storage.upload_file")
    def test_logo_replacement_releases_previous_blob(self, upload_file, remove_blobs):
        Team.objects.filter(pk=self.team.id).update(logo_key="teams/old/logo.png", logo_url="https://cdn/old.png")
        upload_file.return_value = {"key": "teams/new/logo.png", "view_url": "https://cdn/new.png"}
        logo = SimpleUploadedFile("logo.png", b"png", content_type="image/png")

        team = services.edit_team(self.leader, self.team.id, {}, logo=logo)

        self.assertEqual(team.logo_key, "teams/new/logo.png")
        self.assertEqual(team.logo_url, "https://cdn/new.png")
        remove_blobs.assert_called_once_with("team-logos", ["teams/old/logo.png"])

    @mock.patch("core.storage.remove_blobs", return_value=True)
    def test_delete_team_cascades(self, remove_blobs):
        Team.objects.filter(pk=self.team.id).update(logo_key="teams/a/logo.png")
        members = add_members(self.team, 3)
        outsider = make_user("outsider@example.com")
        requester = make_user("requester@example.com")
        services.send_invitation(self.leader, outsider.id)
        services.request_join(requester, self.team.id)
        team_id = self.team.id

        services.delete_team(self.leader, team_id)

        for user in [self.leader] + members:
            user.refresh_from_db()
            self.assertIsNone(user.team_id)
        self.assertFalse(Team.objects.filter(pk=team_id).exists())
        self.assertEqual(Invitation.objects.filter(team_id=team_id).count(), 0)
        self.assertEqual(JoinRequest.objects.filter(team_id=team_id).count(), 0)
        remove_blobs.assert_called_once_with("team-logos", ["teams/a/logo.png"])

    def test_delete_team_is_leader_only(self):
        member = add_members(self.team, 1)[0]
        with self.assertRaises(NotAuthorized):
            services.delete_team(member, self.team.id)
        with self.assertRaises(NotFound):
            services.delete_team(self.leader, 999999)

    def test_remove_member(self):
        member = add_members(self.team, 1)[0]

        team = services.remove_member(self.leader, self.team.id, member.id)

        member.refresh_from_db()
        self.assertIsNone(member.team_id)
        self.assertEqual(team.member_count, 1)

    def test_leader_cannot_remove_self(self):
        with self.assertRaises(CannotRemoveLeader):
            services.remove_member(self.leader, self.team.id, self.leader.id)

    def test_remove_member_rejects_non_member_and_non_leader(self):
        outsider = make_user("outsider@example.com")
        member = add_members(self.team, 1)[0]

        with self.assertRaises(NotFound):
            services.remove_member(self.leader, self.team.id, outsider.id)
        with self.assertRaises(NotAuthorized):
            services.remove_member(member, self.team.id, self.leader.id)

    def test_leave_team(self):
        member = add_members(self.team, 1)[0]

        services.leave_team(member)

        member.refresh_from_db()
        self.assertIsNone(member.team_id)

    def test_leader_cannot_leave(self):
        with self.assertRaises(LeaderMustDelete):
            services.leave_team(self.leader)

    def test_leave_without_team(self):
        with self.assertRaises(NotInTeam):
            services.leave_team(make_user("loner@example.com"))


class JoinRequestWorkflowTests(TestCase):
    def setUp(self):
        self.leader = make_user("leader@example.com")
        self.team = services.create_team(self.leader, "Alpha")
        self.alice = make_user("alice@example.com", gender="female")

    def test_request_join_adds_pending_request(self):
        team = services.request_join(self.alice, self.team.id)

        self.assertEqual(team.pending_count, 1)
        self.assertTrue(self.team.pending_requests.filter(pk=self.alice.pk).exists())

    def test_duplicate_request(self):
        services.request_join(self.alice, self.team.id)
        with self.assertRaises(DuplicateRequest):
            services.request_join(self.alice, self.team.id)

    def test_request_join_when_already_in_team(self):
        with self.assertRaises(AlreadyInTeam):
            services.request_join(self.leader, self.team.id)

    def test_request_join_full_team(self):
        add_members(self.team, 4)
        add_members(self.team, 1, gender="female", prefix="f")

        with self.assertRaises(TeamFull):
            services.request_join(self.alice, self.team.id)

    def test_request_join_does_not_apply_gender_rule(self):
        add_members(self.team, 4)
        bob = make_user("bob@example.com")

        services.request_join(bob, self.team.id)

        self.assertTrue(JoinRequest.objects.filter(team=self.team, user=bob).exists())

    def test_cancel_is_idempotent(self):
        services.request_join(self.alice, self.team.id)

        services.cancel_join_request(self.alice, self.team.id)
        services.cancel_join_request(self.alice, self.team.id)

        self.assertEqual(self.team.pending_requests.count(), 0)

    def test_cancel_by_member_is_refused(self):
        with self.assertRaises(AlreadyMember):
            services.cancel_join_request(self.leader, self.team.id)

    def test_approve_admits_and_prunes(self):
        other_leader = make_user("other@example.com")
        other_team = services.create_team(other_leader, "Beta")
        services.request_join(self.alice, self.team.id)
        services.request_join(self.alice, other_team.id)
        services.send_invitation(other_leader, self.alice.id)

        team = services.approve_join_request(self.leader, self.team.id, self.alice.id)

        self.alice.refresh_from_db()
        self.assertEqual(self.alice.team_id, self.team.id)
        self.assertEqual(team.member_count, 2)
        self.assertFalse(JoinRequest.objects.filter(user=self.alice).exists())
        self.assertEqual(
            Invitation.objects.get(invitee=self.alice).status, Invitation.STATUS_REJECTED
        )
        assert_team_invariants(self)

    def test_approve_is_leader_only(self):
        services.request_join(self.alice, self.team.id)
        member = add_members(self.team, 1)[0]

        with self.assertRaises(NotAuthorized):
            services.approve_join_request(member, self.team.id, self.alice.id)

    def test_approve_without_request(self):
        with self.assertRaises(NotFound):
            services.approve_join_request(self.leader, self.team.id, self.alice.id)

    def test_reject_removes_request_unconditionally(self):
        services.request_join(self.alice, self.team.id)

        services.reject_join_request(self.leader, self.team.id, self.alice.id)
        services.reject_join_request(self.leader, self.team.id, self.alice.id)

        self.assertFalse(JoinRequest.objects.exists())
        self.alice.refresh_from_db()
        self.assertIsNone(self.alice.team_id)

    def test_sixth_member_must_satisfy_gender_balance(self):
        add_members(self.team, 4)
        bob = make_user("bob@example.com")
        services.request_join(bob, self.team.id)
        services.request_join(self.alice, self.team.id)

        with self.assertRaises(GenderBalanceViolation):
            services.approve_join_request(self.leader, self.team.id, bob.id)

        bob.refresh_from_db()
        self.assertIsNone(bob.team_id)
        self.assertTrue(JoinRequest.objects.filter(team=self.team, user=bob).exists())
        self.assertEqual(User.objects.filter(team=self.team).count(), 5)

        services.approve_join_request(self.leader, self.team.id, self.alice.id)
        self.assertEqual(User.objects.filter(team=self.team).count(), 6)
        assert_team_invariants(self)

    def test_last_slot_race_is_decided_by_gender_in_either_order(self):
        for order in (("female", "male"), ("male", "female")):
            with self.subTest(order=order):
                leader = make_user(f"lead-{order[0]}@example.com")
                team = services.create_team(leader, f"Team {order[0]}")
                add_members(team, 4, prefix=order[0])
                candidates = {
                    gender: make_user(f"{gender}-{order[0]}@example.com", gender=gender)
                    for gender in ("female", "male")
                }
                for user in candidates.values():
                    services.request_join(user, team.id)

                outcomes = {}
                for gender in order:
                    try:
                        services.approve_join_request(leader, team.id, candidates[gender].id)
                        outcomes[gender] = "ok"
                    except Conflict as exc:
                        outcomes[gender] = exc.default_code

                self.assertEqual(outcomes["female"], "ok")
                self.assertIn(outcomes["male"], ("team_full", "gender_balance"))
                self.assertEqual(User.objects.filter(team=team).count(), 6)

    def test_gender_rule_does_not_apply_below_full_size(self):
        add_members(self.team, 3)
        bob = make_user("bob@example.com")
        services.request_join(bob, self.team.id)

        services.approve_join_request(self.leader, self.team.id, bob.id)

        self.assertEqual(User.objects.filter(team=self.team).count(), 5)

    def test_stale_request_is_pruned_and_reported(self):
        other_leader = make_user("other@example.com")
        other_team = services.create_team(other_leader, "Beta")
        services.request_join(self.alice, self.team.id)
        services.request_join(self.alice, other_team.id)

        services.approve_join_request(other_leader, other_team.id, self.alice.id)

        with self.assertRaises(UserNoLongerAvailable):
            services.approve_join_request(self.leader, self.team.id, self.alice.id)

        self.alice.refresh_from_db()
        self.assertEqual(self.alice.team_id, other_team.id)
        self.assertFalse(JoinRequest.objects.filter(team=self.team).exists())
        self.assertEqual(User.objects.filter(team=self.team).count(), 1)

    def test_stale_request_left_behind_is_deleted(self):
        other_team = services.create_team(make_user("other@example.com"), "Beta")
        JoinRequest.objects.create(team=self.team, user=self.alice)
        # joined elsewhere without going through the workflow
        User.objects.filter(pk=self.alice.pk).update(team=other_team)

        with self.assertRaises(UserNoLongerAvailable):
            services.approve_join_request(self.leader, self.team.id, self.alice.id)

        self.assertFalse(JoinRequest.objects.filter(team=self.team, user=self.alice).exists())


class InvitationWorkflowTests(TestCase):
    def setUp(self):
        self.leader = make_user("leader@example.com")
        self.team = services.create_team(self.leader, "Alpha")
        self.alice = make_user("alice@example.com", gender="female")

    def test_send_invitation(self):
        invitation = services.send_invitation(self.leader, self.alice.id)

        self.assertEqual(invitation.team_id, self.team.id)
        self.assertEqual(invitation.inviter_id, self.leader.id)
        self.assertEqual(invitation.status, Invitation.STATUS_PENDING)
        self.assertEqual(services.count_my_invitations(self.alice), 1)

    def test_only_leader_can_invite(self):
        member = add_members(self.team, 1)[0]
        with self.assertRaises(NotAuthorized):
            services.send_invitation(member, self.alice.id)

    def test_teamless_user_cannot_invite(self):
        with self.assertRaises(NotInTeam):
            services.send_invitation(make_user("loner@example.com"), self.alice.id)

    def test_cannot_invite_user_in_a_team(self):
        other = make_user("other@example.com")
        services.create_team(other, "Beta")

        with self.assertRaises(AlreadyInTeam):
            services.send_invitation(self.leader, other.id)

    def test_duplicate_pending_invitation(self):
        services.send_invitation(self.leader, self.alice.id)
        with self.assertRaises(DuplicateInvitation):
            services.send_invitation(self.leader, self.alice.id)

    def test_reinvite_after_rejection(self):
        invitation = services.send_invitation(self.leader, self.alice.id)
        services.reject_invitation(self.alice, invitation.id)

        again = services.send_invitation(self.leader, self.alice.id)

        self.assertNotEqual(again.id, invitation.id)

    def test_accept_invitation_admits_and_declines_others(self):
        other_team = services.create_team(make_user("other@example.com"), "Beta")
        Invitation.objects.create(team=other_team, inviter=other_team.leader, invitee=self.alice)
        services.request_join(self.alice, other_team.id)
        invitation = services.send_invitation(self.leader, self.alice.id)

        team = services.accept_invitation(self.alice, invitation.id)

        self.alice.refresh_from_db()
        self.assertEqual(self.alice.team_id, self.team.id)
        self.assertEqual(team.member_count, 2)
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_ACCEPTED)
        self.assertEqual(
            Invitation.objects.get(team=other_team).status, Invitation.STATUS_REJECTED
        )
        self.assertFalse(JoinRequest.objects.filter(user=self.alice).exists())

    def test_accept_runs_gender_balance_check(self):
        add_members(self.team, 4)
        bob = make_user("bob@example.com")
        invitation = services.send_invitation(self.leader, bob.id)

        with self.assertRaises(GenderBalanceViolation):
            services.accept_invitation(bob, invitation.id)

        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_PENDING)
        bob.refresh_from_db()
        self.assertIsNone(bob.team_id)

    def test_accept_runs_size_check(self):
        invitation = services.send_invitation(self.leader, self.alice.id)
        add_members(self.team, 4)
        add_members(self.team, 1, gender="female", prefix="f")

        with self.assertRaises(TeamFull):
            services.accept_invitation(self.alice, invitation.id)

    def test_accept_when_already_in_team(self):
        invitation = services.send_invitation(self.leader, self.alice.id)
        services.create_team(self.alice, "Beta")

        # creating a team declined the invitation
        with self.assertRaises(NotFound):
            services.accept_invitation(self.alice, invitation.id)

    def test_only_invitee_can_answer(self):
        invitation = services.send_invitation(self.leader, self.alice.id)
        with self.assertRaises(NotFound):
            services.accept_invitation(make_user("bob@example.com"), invitation.id)
        with self.assertRaises(NotFound):
            services.reject_invitation(self.leader, invitation.id)

    def test_reject_does_not_overwrite_an_accepted_invitation(self):
        invitation = services.send_invitation(self.leader, self.alice.id)
        stale = Invitation.objects.get(pk=invitation.id)
        services.accept_invitation(self.alice, invitation.id)

        # reject read the row before accept committed
        with mock.patch.object(services, "_pending_invitation_for", return_value=stale):
            with self.assertRaises(StaleState):
                services.reject_invitation(self.alice, invitation.id)

        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_ACCEPTED)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.team_id, self.team.id)

    def test_cancel_invitation(self):
        invitation = services.send_invitation(self.leader, self.alice.id)

        services.cancel_invitation(self.leader, invitation.id)

        self.assertFalse(Invitation.objects.filter(pk=invitation.id).exists())

    def test_cancel_invitation_rules(self):
        invitation = services.send_invitation(self.leader, self.alice.id)
        member = add_members(self.team, 1)[0]

        with self.assertRaises(NotAuthorized):
            services.cancel_invitation(member, invitation.id)

        services.reject_invitation(self.alice, invitation.id)
        with self.assertRaises(Conflict):
            services.cancel_invitation(self.leader, invitation.id)

    def test_list_team_invitations_is_leader_only(self):
        services.send_invitation(self.leader, self.alice.id)

        self.assertEqual(services.list_team_invitations(self.leader, self.team.id).count(), 1)
        with self.assertRaises(NotAuthorized):
            services.list_team_invitations(self.alice, self.team.id)
