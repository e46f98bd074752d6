# updates/models.py
from django.db import models
from django.utils import timezone


class Update(models.Model):
    """
    An announcement shown on the updates page.

    ``hash`` identifies the item within its ``source`` so the feeder never
    inserts the same announcement twice. It is fixed at creation; later
    edits don't change it.
    """
    SOURCE_ADMIN = "admin"

    title = models.CharField(max_length=300)
    url = models.URLField(max_length=2048, blank=True, default="")
    summary = models.TextField(blank=True, default="")
    published_at = models.DateTimeField(null=True, blank=True, db_index=True)
    source = models.CharField(max_length=50, default="sih", db_index=True)
    hash = models.CharField(max_length=64)
    pinned = models.BooleanField(default=False)
    is_public = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-pinned", "-published_at", "-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["source", "hash"], name="unique_update_per_source"),
        ]

    def __str__(self):
        return self.title


class UpdateRun(models.Model):
    """
    One feeder/ingest pass.
    """
    source = models.CharField(max_length=50, default="sih")
    started_at = models.DateTimeField(default=timezone.now)
    finished_at = models.DateTimeField(null=True, blank=True)
    ok = models.BooleanField(default=False)
    items_fetched = models.PositiveIntegerField(default=0)
    items_inserted = models.PositiveIntegerField(default=0)
    error_message = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-started_at"]

    def __str__(self):
        return f"{self.source} run at {self.started_at:%Y-%m-%d %H:%M}"
