# teams/models.py
from django.conf import settings
from django.db import models


DEFAULT_PROBLEM_TITLE = "Not yet defined"
DEFAULT_PROBLEM_DESCRIPTION = "No description provided yet."


class Team(models.Model):
    """
    A hackathon team.

    Members are the users whose ``team`` points here (``team.members``),
    so a user can only ever be on one roster. The leader is always one of
    them; removing the leader means deleting the team.
    """
    name = models.CharField(max_length=100, unique=True)
    leader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="led_teams",
    )

    pending_requests = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="JoinRequest",
        related_name="requested_teams",
        blank=True,
    )

    problem_statement_title = models.CharField(max_length=255, default=DEFAULT_PROBLEM_TITLE)
    problem_statement_description = models.TextField(default=DEFAULT_PROBLEM_DESCRIPTION)

    logo_key = models.CharField(max_length=512, blank=True, default="")
    logo_url = models.CharField(max_length=1024, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name


class JoinRequest(models.Model):
    """
    User-initiated request to join a team, awaiting the leader.
    """
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="join_requests")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="join_requests",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["team", "user"], name="unique_join_request"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.team}"


class Invitation(models.Model):
    """
    Leader-initiated counterpart of a join request.
    """
    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_REJECTED, "Rejected"),
    )

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="invitations")
    inviter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="invitations_sent",
    )
    invitee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="invitations_received",
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["team", "invitee"],
                condition=models.Q(status="pending"),
                name="unique_pending_invitation",
            ),
        ]

    def __str__(self):
        return f"{self.team} invites {self.invitee} ({self.status})"
