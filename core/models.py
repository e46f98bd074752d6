# core/models.py
from django.db import models
from django.conf import settings


class AdminLog(models.Model):
    """
    Immutable ledger of admin actions (verification, moderation, deletes).
    """
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="admin_logs",
    )

    # What happened? (e.g., 'USER_VERIFY')
    action = models.CharField(max_length=64, db_index=True)

    # To what? ('User' | 'Team' | 'Idea' | 'Update' | 'Resource')
    target_type = models.CharField(max_length=32)
    target_id = models.PositiveBigIntegerField(null=True, blank=True)

    # Snapshot of old/new values, ids for bulk actions, etc.
    meta = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action", "target_type"], name="adminlog_action_target_idx"),
        ]

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.target_type}#{self.target_id}"


class AdminConfig(models.Model):
    """
    Admin-managed key/value settings (e.g. 'allowedSocialPlatforms').
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(default=None, null=True, blank=True)
    description = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key
