# users/models.py
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class User(AbstractUser):
    ROLE_STUDENT = "student"
    ROLE_SPOC = "spoc"
    ROLE_JUDGE = "judge"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_STUDENT, 'Student'),
        (ROLE_SPOC, 'SPOC'),
        (ROLE_JUDGE, 'Judge'),
        (ROLE_ADMIN, 'Admin'),
    )

    GENDER_MALE = "male"
    GENDER_FEMALE = "female"
    GENDER_OTHER = "other"

    GENDER_CHOICES = (
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
        (GENDER_OTHER, 'Other'),
    )

    VERIFY_ROLL_NUMBER = "roll_number"
    VERIFY_DOCUMENT = "document_upload"

    VERIFICATION_CHOICES = (
        (VERIFY_ROLL_NUMBER, 'Roll number'),
        (VERIFY_DOCUMENT, 'Document upload'),
    )

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=120, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default=GENDER_OTHER)
    year = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(4)],
    )
    roll_number = models.CharField(max_length=32, unique=True, null=True, blank=True)

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_STUDENT
    )

    # Gates login; set automatically for preapproved roll numbers
    verified = models.BooleanField(default=False)
    is_admin = models.BooleanField(default=False)

    # Membership of a team *is* this reference (Team.members reads it back)
    team = models.ForeignKey(
        'teams.Team',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members',
    )

    verification_method = models.CharField(
        max_length=20,
        choices=VERIFICATION_CHOICES,
        default=VERIFY_ROLL_NUMBER,
    )
    document_key = models.CharField(max_length=512, blank=True, default="")
    photo_key = models.CharField(max_length=512, blank=True, default="")
    photo_url = models.CharField(max_length=1024, blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")
    # platform -> full profile URL
    social_profiles = models.JSONField(default=dict, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        if self.roll_number == "":
            self.roll_number = None
        super().save(*args, **kwargs)

    @property
    def display_name(self):
        return self.name or self.username

    def __str__(self):
        return self.email or self.username


class PreapprovedStudent(models.Model):
    """
    Allowlist of roll numbers; registering with one auto-verifies the account.
    """
    name = models.CharField(max_length=120, blank=True)
    roll_number = models.CharField(max_length=32, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["roll_number"]

    def __str__(self):
        return f"{self.roll_number} ({self.name})"
