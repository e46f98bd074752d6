# resources/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q


class Resource(models.Model):
    """
    A shared link or uploaded file, moderated before it becomes public.

    Exactly one source is set: ``url`` for links, ``file_key`` (plus the
    rest of the file descriptor) for uploads.
    """
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    )

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, db_index=True)
    tags = models.JSONField(default=list, blank=True)

    url = models.URLField(max_length=2048, blank=True, default="")

    # Uploaded file descriptor
    file_key = models.CharField(max_length=512, blank=True, default="")
    file_url = models.CharField(max_length=1024, blank=True, default="")
    file_download_url = models.CharField(max_length=1024, blank=True, default="")
    file_name = models.CharField(max_length=255, blank=True, default="")
    file_mime_type = models.CharField(max_length=127, blank=True, default="")
    file_size = models.PositiveBigIntegerField(null=True, blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    rejection_reason = models.TextField(blank=True, default="")
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_resources",
    )
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="resources",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(Q(url="") & ~Q(file_key="")) | (~Q(url="") & Q(file_key="")),
                name="resource_exactly_one_source",
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def has_file(self):
        return bool(self.file_key)
