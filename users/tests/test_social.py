from django.contrib.auth import get_user_model
from django.test import SimpleTestCase

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from core.models import AdminConfig, AdminLog
from users import services, social


User = get_user_model()


def make_user(email, **extra):
    extra.setdefault("verified", True)
    return User.objects.create_user(username=email, email=email, password="pass1234", **extra)


class SocialNormalizeTests(SimpleTestCase):
    def test_bare_username_becomes_profile_url(self):
        self.assertEqual(social.normalize("github", " asha "), "https://github.com/asha")
        self.assertEqual(social.normalize("medium", "@asha"), "https://medium.com/@asha")
        self.assertEqual(
            social.normalize("linkedin", "https://linkedin.com/in/asha"), "https://linkedin.com/in/asha"
        )

    def test_url_must_match_platform(self):
        self.assertTrue(social.is_valid("github", "https://github.com/asha"))
        self.assertFalse(social.is_valid("github", "https://gitlab.com/asha"))


class SocialProfileApiTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("asha@example.com", name="Asha")
        self.admin = make_user("admin@example.com", is_admin=True)
        self.client.force_authenticate(self.user)

    def test_config_is_public(self):
        self.client.force_authenticate(None)
        resp = self.client.get("/api/users/social/config/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["allowed_platforms"], social.ALL_PLATFORMS)
        self.assertEqual(resp.data["platforms"][0]["key"], "linkedin")

    def test_update_normalizes_usernames(self):
        resp = self.client.put(
            "/api/users/social/me/",
            {"social_profiles": {"github": "asha", "leetcode": "https://leetcode.com/asha", "kaggle": ""}},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        expected = {"github": "https://github.com/asha", "leetcode": "https://leetcode.com/asha"}
        self.assertEqual(resp.data["social_profiles"], expected)
        self.user.refresh_from_db()
        self.assertEqual(self.user.social_profiles, expected)

        resp = self.client.get("/api/users/social/me/")
        self.assertEqual(resp.data["social_profiles"], expected)

    def test_invalid_url_rejects_whole_update(self):
        self.user.social_profiles = {"github": "https://github.com/asha"}
        self.user.save()

        resp = self.client.put(
            "/api/users/social/me/",
            {"social_profiles": {"github": "https://gitlab.com/asha", "kaggle": "asha"}},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("github", resp.data["errors"])
        self.user.refresh_from_db()
        self.assertEqual(self.user.social_profiles, {"github": "https://github.com/asha"})

    def test_unknown_platform_rejected(self):
        resp = self.client.put(
            "/api/users/social/me/", {"social_profiles": {"myspace": "asha"}}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("myspace", resp.data["errors"])

    def test_disabled_platforms_are_cleared_and_hidden(self):
        self.user.social_profiles = {"kaggle": "https://www.kaggle.com/asha"}
        self.user.save()
        services.set_allowed_platforms(self.admin, ["github", "linkedin"])

        resp = self.client.get(f"/api/users/social/{self.user.id}/")
        self.assertEqual(resp.data["social_profiles"], {})

        resp = self.client.put(
            "/api/users/social/me/",
            {"social_profiles": {"github": "asha", "kaggle": "asha"}},
            format="json",
        )
        self.assertEqual(resp.data["social_profiles"], {"github": "https://github.com/asha"})

    def test_teammate_profiles(self):
        other = make_user("ravi@example.com", name="Ravi", social_profiles={"github": "https://github.com/ravi"})

        resp = self.client.get(f"/api/users/social/{other.id}/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["name"], "Ravi")
        self.assertEqual(resp.data["social_profiles"], {"github": "https://github.com/ravi"})

        resp = self.client.get("/api/users/social/999999/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class SocialConfigAdminTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user("admin@example.com", is_admin=True)
        self.client.force_authenticate(self.admin)

    def test_admin_sets_allowed_platforms(self):
        resp = self.client.put(
            "/api/admin/social-config/", {"allowed_platforms": ["github", "bogus", "kaggle"]}, format="json"
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertEqual(resp.data["data"]["allowed_platforms"], ["github", "kaggle"])
        self.assertEqual(AdminConfig.objects.get(key="allowedSocialPlatforms").value, ["github", "kaggle"])
        self.assertTrue(AdminLog.objects.filter(action="SOCIAL_CONFIG_UPDATE").exists())

    def test_empty_list_enables_everything(self):
        services.set_allowed_platforms(self.admin, ["github"])

        resp = self.client.put("/api/admin/social-config/", {"allowed_platforms": []}, format="json")

        self.assertEqual(resp.data["data"]["allowed_platforms"], social.ALL_PLATFORMS)

    def test_students_are_refused(self):
        self.client.force_authenticate(make_user("s@example.com"))

        self.assertEqual(self.client.get("/api/admin/social-config/").status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.put("/api/admin/social-config/", {"allowed_platforms": ["github"]}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
