from unittest import mock

from django.contrib.auth import get_user_model

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from core.models import AdminLog
from ideas.models import Idea
from resources.models import Resource
from teams import services as team_services
from teams.models import Invitation, JoinRequest, Team


User = get_user_model()


def make_user(email, gender="male", **extra):
    extra.setdefault("verified", True)
    return User.objects.create_user(
        username=email, email=email, password="pass1234", gender=gender, **extra
    )


class BackofficeTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user("admin@example.com", is_admin=True, name="Admin")
        self.leader = make_user("leader@example.com", name="Lead")
        self.alice = make_user("alice@example.com", gender="female", name="Alice")
        self.pending = make_user("pending@example.com", verified=False, name="Pending")
        self.team = team_services.create_team(self.leader, "Alpha")
        self.client.force_authenticate(self.admin)

    def test_students_are_refused(self):
        self.client.force_authenticate(self.alice)
        for path in ["/api/admin/metrics/", "/api/admin/users/", "/api/admin/teams/", "/api/admin/logs/"]:
            resp = self.client.get(path)
            self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN, path)

    def test_metrics(self):
        team_services.request_join(self.alice, self.team.id)
        Resource.objects.create(title="R", category="Docs", url="https://x.dev", added_by=self.alice)
        Idea.objects.create(title="I", description="d", author=self.alice)

        resp = self.client.get("/api/admin/metrics/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["meta"]["success"])
        data = resp.data["data"]
        self.assertEqual(data["users"], {"total": 4, "verified": 3})
        self.assertEqual(data["teams"], {"total": 1, "full": 0, "pending_join_requests": 1})
        self.assertEqual(data["resources"], {"pending": 1, "approved": 0, "rejected": 0})
        self.assertEqual(data["ideas"]["total"], 1)

    def test_user_list_filters(self):
        resp = self.client.get("/api/admin/users/", {"verified": "false"})
        items = resp.data["data"]["items"]
        self.assertEqual([u["email"] for u in items], ["pending@example.com"])

        resp = self.client.get("/api/admin/users/", {"admin": "true"})
        self.assertEqual(resp.data["data"]["pagination"]["total"], 1)

        resp = self.client.get("/api/admin/users/", {"q": "ali", "sort": "name"})
        self.assertEqual([u["name"] for u in resp.data["data"]["items"]], ["Alice"])

    def test_update_user_logs_each_change(self):
        resp = self.client.put(
            f"/api/admin/users/{self.pending.id}/",
            {"verified": True, "role": "judge", "password": "a-much-better-pass"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.pending.refresh_from_db()
        self.assertTrue(self.pending.verified)
        self.assertEqual(self.pending.role, "judge")
        self.assertTrue(self.pending.check_password("a-much-better-pass"))
        actions = sorted(AdminLog.objects.filter(target_id=self.pending.id).values_list("action", flat=True))
        self.assertEqual(actions, ["USER_PASSWORD_RESET", "USER_ROLE_UPDATE", "USER_VERIFY"])

    def test_update_user_rejects_bad_input(self):
        resp = self.client.put(f"/api/admin/users/{self.alice.id}/", {"role": "wizard"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.put(f"/api/admin/users/{self.alice.id}/", {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.put(f"/api/admin/users/{self.alice.id}/", {"email": "x@y.z"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bulk_verify_and_admin(self):
        resp = self.client.post(
            "/api/admin/users/bulk-verify/", {"ids": [self.pending.id, self.alice.id]}, format="json"
        )
        self.assertEqual(resp.data["data"], {"matched": 2, "modified": 1})

        resp = self.client.post(
            "/api/admin/users/bulk-admin/", {"ids": [self.alice.id], "value": True}, format="json"
        )
        self.assertEqual(resp.data["data"]["modified"], 1)
        self.alice.refresh_from_db()
        self.assertTrue(self.alice.is_admin)

    @mock.patch("core.storage.remove_blobs", return_value=True)
    def test_deleting_a_leader_deletes_their_team(self, remove_blobs):
        User.objects.filter(pk=self.alice.pk).update(team=self.team)
        outsider = make_user("outsider@example.com")
        team_services.request_join(outsider, self.team.id)

        resp = self.client.delete(f"/api/admin/users/{self.leader.id}/")

        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Team.objects.exists())
        self.assertFalse(JoinRequest.objects.exists())
        self.alice.refresh_from_db()
        self.assertIsNone(self.alice.team_id)
        self.assertTrue(AdminLog.objects.filter(action="USER_DELETE", target_id=self.leader.id).exists())

    def test_deleting_a_member_frees_their_invitations(self):
        other_leader = make_user("other@example.com")
        other = team_services.create_team(other_leader, "Beta")
        team_services.send_invitation(other_leader, self.alice.id)

        resp = self.client.post(
            "/api/admin/users/bulk-delete/", {"ids": [self.alice.id, self.admin.id]}, format="json"
        )

        self.assertEqual(resp.data["data"], {"deleted": 1, "skipped": [self.admin.id]})
        self.assertFalse(Invitation.objects.filter(team=other).exists())
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_admin_cannot_delete_self(self):
        resp = self.client.delete(f"/api/admin/users/{self.admin.id}/")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_teams_list_and_detail(self):
        team_services.request_join(self.alice, self.team.id)

        resp = self.client.get("/api/admin/teams/", {"leader": self.leader.id})
        item = resp.data["data"]["items"][0]
        self.assertEqual((item["member_count"], item["pending_count"]), (1, 1))

        resp = self.client.get(f"/api/admin/teams/{self.team.id}/")
        self.assertEqual([u["id"] for u in resp.data["data"]["pending_requests"]], [self.alice.id])

        resp = self.client.get("/api/admin/teams/999999/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_ideas_and_logs(self):
        idea = Idea.objects.create(title="Hostel wifi map", description="d", author=self.alice)

        resp = self.client.get("/api/admin/ideas/")
        self.assertEqual(resp.data["data"]["items"][0]["author_email"], "alice@example.com")

        resp = self.client.delete(f"/api/admin/ideas/{idea.id}/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

        resp = self.client.get("/api/admin/logs/", {"action": "IDEA_DELETE"})
        entry = resp.data["data"]["items"][0]
        self.assertEqual(entry["actor_email"], "admin@example.com")
        self.assertEqual(entry["meta"]["title"], "Hostel wifi map")
