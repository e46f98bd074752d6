from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from django.conf import settings
from rest_framework.exceptions import ValidationError

from core.exceptions import InvalidSubmission, NotAuthorized, NotFound, StorageFailure
from core.models import AdminLog
from resources import services
from resources.models import Resource


User = get_user_model()

DESCRIPTOR = {
    "key": "resources/abc-guide.pdf",
    "view_url": "https://cdn.example.com/resources/abc-guide.pdf",
    "download_url": "https://cdn.example.com/resources/abc-guide.pdf?download=guide.pdf",
    "original_name": "guide.pdf",
    "mime_type": "application/pdf",
    "size": 3,
}


def make_user(email, **extra):
    return User.objects.create_user(username=email, email=email, password="pass1234", verified=True, **extra)


def pdf(name="guide.pdf", content=b"pdf"):
    return SimpleUploadedFile(name, content, content_type="application/pdf")


class SubmissionTests(TestCase):
    def setUp(self):
        self.user = make_user("student@example.com")

    def test_submit_link(self):
        resource = services.submit(
            self.user,
            {"title": "Django docs", "category": "Web", "url": "https://docs.djangoproject.com", "tags": "python, web"},
        )

        self.assertEqual(resource.status, Resource.STATUS_PENDING)
        self.assertEqual(resource.added_by, self.user)
        self.assertEqual(resource.tags, ["python", "web"])
        self.assertEqual(resource.file_key, "")

    @mock.patch("core.storage.upload_file", return_value=dict(DESCRIPTOR))
    def test_submit_file(self, upload_file):
        resource = services.submit(self.user, {"title": "Guide", "category": "Docs"}, file=pdf())

        upload_file.assert_called_once()
        self.assertEqual(upload_file.call_args[0][:2], ("resources", "resources"))
        self.assertEqual(resource.url, "")
        self.assertEqual(resource.file_key, DESCRIPTOR["key"])
        self.assertEqual(resource.file_download_url, DESCRIPTOR["download_url"])
        self.assertEqual(resource.file_name, "guide.pdf")
        self.assertEqual(resource.file_size, 3)

    @mock.patch("core.storage.upload_file")
    def test_link_and_file_together_is_refused_before_anything_is_written(self, upload_file):
        with self.assertRaises(InvalidSubmission):
            services.submit(
                self.user,
                {"title": "Both", "category": "Docs", "url": "http://x"},
                file=pdf(),
            )

        upload_file.assert_not_called()
        self.assertFalse(Resource.objects.exists())

    def test_neither_link_nor_file_is_refused(self):
        with self.assertRaises(InvalidSubmission):
            services.submit(self.user, {"title": "Nothing", "category": "Docs"})
        self.assertFalse(Resource.objects.exists())

    def test_title_and_category_are_required(self):
        with self.assertRaises(ValidationError):
            services.submit(self.user, {"title": " ", "category": "", "url": "https://x.dev"})

    @override_settings(PORTAL={**settings.PORTAL, "RESOURCE_MAX_UPLOAD_BYTES": 2})
    @mock.patch("core.storage.upload_file")
    def test_file_size_cap(self, upload_file):
        with self.assertRaises(ValidationError):
            services.submit(self.user, {"title": "Big", "category": "Docs"}, file=pdf(content=b"too big"))
        upload_file.assert_not_called()

    @mock.patch("core.storage.upload_file", side_effect=StorageFailure())
    def test_storage_failure_on_upload_is_fatal(self, upload_file):
        with self.assertRaises(StorageFailure):
            services.submit(self.user, {"title": "Guide", "category": "Docs"}, file=pdf())
        self.assertFalse(Resource.objects.exists())

    @mock.patch("core.storage.remove_blobs", return_value=True)
    @mock.patch("core.storage.upload_file", return_value=dict(DESCRIPTOR))
    def test_failed_row_write_releases_blob(self, upload_file, remove_blobs):
        with mock.patch("resources.services.Resource.objects.create", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                services.submit(self.user, {"title": "Guide", "category": "Docs"}, file=pdf())

        remove_blobs.assert_called_once_with("resources", [DESCRIPTOR["key"]])

    def test_database_refuses_both_sources(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Resource.objects.create(
                    title="Broken", category="Docs", url="http://x", file_key="k", added_by=self.user
                )

    def test_database_refuses_no_source(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Resource.objects.create(title="Broken", category="Docs", added_by=self.user)


class ModerationTests(TestCase):
    def setUp(self):
        self.admin = make_user("admin@example.com", is_admin=True)
        self.student = make_user("student@example.com")
        self.link = Resource.objects.create(
            title="Link", category="Web", url="https://example.com", added_by=self.student
        )
        self.file = Resource.objects.create(
            title="File", category="Docs", file_key="resources/a.pdf", added_by=self.student
        )

    def test_approve_records_admin_and_clears_reason(self):
        Resource.objects.filter(pk=self.link.pk).update(
            status=Resource.STATUS_REJECTED, rejection_reason="spam"
        )

        resource = services.approve(self.admin, self.link.id)

        self.assertEqual(resource.status, Resource.STATUS_APPROVED)
        self.assertEqual(resource.approved_by, self.admin)
        self.assertEqual(resource.rejection_reason, "")
        self.assertTrue(AdminLog.objects.filter(action="RESOURCE_APPROVE", target_id=self.link.id).exists())

    def test_approve_twice_is_harmless(self):
        services.approve(self.admin, self.link.id)
        resource = services.approve(self.admin, self.link.id)
        self.assertEqual(resource.status, Resource.STATUS_APPROVED)

    def test_reject_clears_approver(self):
        services.approve(self.admin, self.link.id)

        resource = services.reject(self.admin, self.link.id, "Broken link")

        self.assertEqual(resource.status, Resource.STATUS_REJECTED)
        self.assertIsNone(resource.approved_by)
        self.assertEqual(resource.rejection_reason, "Broken link")

    def test_moderation_is_admin_only(self):
        with self.assertRaises(NotAuthorized):
            services.approve(self.student, self.link.id)
        with self.assertRaises(NotAuthorized):
            services.reject(self.student, self.link.id, "no")
        with self.assertRaises(NotAuthorized):
            services.delete(self.student, self.link.id)
        with self.assertRaises(NotAuthorized):
            services.bulk_delete(self.student, [self.link.id])

    def test_moderating_missing_resource(self):
        with self.assertRaises(NotFound):
            services.approve(self.admin, 999999)

    def test_submitter_edits_while_pending_only(self):
        resource = services.update(self.student, self.link.id, {"title": "Better title"})
        self.assertEqual(resource.title, "Better title")

        services.approve(self.admin, self.link.id)
        with self.assertRaises(NotAuthorized):
            services.update(self.student, self.link.id, {"title": "Sneaky"})

    def test_admin_edits_any_time(self):
        services.approve(self.admin, self.link.id)

        resource = services.update(self.admin, self.link.id, {"description": "Reviewed"})

        self.assertEqual(resource.description, "Reviewed")
        self.assertEqual(resource.status, Resource.STATUS_APPROVED)

    def test_other_users_cannot_edit(self):
        with self.assertRaises(NotAuthorized):
            services.update(make_user("other@example.com"), self.link.id, {"title": "Mine now"})

    def test_edit_rejects_other_fields(self):
        with self.assertRaises(ValidationError):
            services.update(self.admin, self.link.id, {"category": "Other"})
        with self.assertRaises(ValidationError):
            services.update(self.admin, self.link.id, {"status": "approved"})

    @mock.patch("core.storage.remove_blobs", return_value=True)
    def test_delete_releases_blob(self, remove_blobs):
        result = services.delete(self.admin, self.file.id)

        self.assertEqual(result, {"deleted": True, "file_released": True})
        remove_blobs.assert_called_once_with("resources", ["resources/a.pdf"])
        self.assertFalse(Resource.objects.filter(pk=self.file.id).exists())

    @mock.patch("core.storage.remove_blobs", return_value=False)
    def test_blob_release_failure_does_not_block_delete(self, remove_blobs):
        result = services.delete(self.admin, self.file.id)

        self.assertEqual(result, {"deleted": True, "file_released": False})
        self.assertFalse(Resource.objects.filter(pk=self.file.id).exists())

    @mock.patch("core.storage.remove_blobs")
    def test_delete_link_skips_blob_store(self, remove_blobs):
        result = services.delete(self.admin, self.link.id)

        self.assertIsNone(result["file_released"])
        remove_blobs.assert_not_called()

    @mock.patch("core.storage.remove_blobs", return_value=True)
    def test_bulk_delete_is_per_item(self, remove_blobs):
        result = services.bulk_delete(self.admin, [self.link.id, 999999, self.file.id])

        self.assertEqual(result, {
            "requested": 3,
            "deleted": 2,
            "not_found": [999999],
            "files_attempted": 1,
            "files_failed": 0,
        })
        self.assertFalse(Resource.objects.exists())
        remove_blobs.assert_called_once_with("resources", ["resources/a.pdf"])

    @mock.patch("core.storage.remove_blobs", return_value=False)
    def test_bulk_delete_reports_failed_blob_release(self, remove_blobs):
        result = services.bulk_delete(self.admin, [self.file.id])

        self.assertEqual(result["deleted"], 1)
        self.assertEqual(result["files_failed"], 1)


class ListingTests(TestCase):
    def setUp(self):
        self.admin = make_user("admin@example.com", is_admin=True)
        self.student = make_user("student@example.com")
        for title, category, status in [
            ("Alpha guide", "Docs", Resource.STATUS_APPROVED),
            ("Beta video", "Video", Resource.STATUS_APPROVED),
            ("Gamma draft", "Docs", Resource.STATUS_PENDING),
            ("Delta spam", "Spam", Resource.STATUS_REJECTED),
        ]:
            Resource.objects.create(
                title=title,
                category=category,
                status=status,
                url=f"https://example.com/{title.split()[0].lower()}",
                added_by=self.student,
            )

    def test_public_listing_only_shows_approved(self):
        titles = list(services.public_resources(sort="title").values_list("title", flat=True))
        self.assertEqual(titles, ["Alpha guide", "Beta video"])

    def test_filters(self):
        self.assertEqual(services.public_resources(category="Video").count(), 1)
        self.assertEqual(services.public_resources(q="guide").count(), 1)
        # public search ignores urls, admin search includes them
        self.assertEqual(services.public_resources(q="example.com/beta").count(), 0)
        self.assertEqual(services.admin_resources(self.admin, q="example.com/beta").count(), 1)

    def test_sort_must_be_known(self):
        with self.assertRaises(ValidationError):
            services.public_resources(sort="added_by")

    def test_admin_listing_by_status(self):
        self.assertEqual(services.admin_resources(self.admin).count(), 4)
        self.assertEqual(services.admin_resources(self.admin, status="pending").count(), 1)
        with self.assertRaises(NotAuthorized):
            services.admin_resources(self.student)

    def test_counts_and_categories(self):
        self.assertEqual(services.counts(self.admin), {"pending": 1, "approved": 2, "rejected": 1})
        self.assertEqual(services.categories(), ["Docs", "Video"])
