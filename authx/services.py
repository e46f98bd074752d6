# authx/services.py
"""
Account lifecycle: registration (with auto-verification against the
preapproved roll-number list), login checks and password management.
"""
import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.db import transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework.exceptions import ValidationError
from rest_framework_simplejwt.tokens import RefreshToken

from core import storage
from core.exceptions import AccountNotVerified
from core.sanitizers import sanitize_title
from users.models import PreapprovedStudent, User

logger = logging.getLogger("portal.auth")


def normalize_email(email):
    return (email or "").strip().lower()


def email_available(email):
    return not User.objects.filter(email__iexact=normalize_email(email)).exists()


def is_preapproved(roll_number):
    if not roll_number:
        return False
    return PreapprovedStudent.objects.filter(roll_number__iexact=roll_number.strip()).exists()


def register(data, document=None):
    """
    Create an account. Preapproved roll numbers are verified immediately;
    everyone else waits for an admin.
    """
    email = normalize_email(data["email"])
    roll_number = (data.get("roll_number") or "").strip() or None

    errors = {}
    if not email_available(email):
        errors["email"] = ["An account with this email already exists."]
    if roll_number and User.objects.filter(roll_number__iexact=roll_number).exists():
        errors["roll_number"] = ["An account with this roll number already exists."]
    if errors:
        raise ValidationError(errors)

    method = data.get("verification_method") or User.VERIFY_ROLL_NUMBER
    verified = is_preapproved(roll_number)

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=data["password"],
            name=sanitize_title(data.get("name"), max_length=120),
            gender=data.get("gender") or User.GENDER_OTHER,
            year=data.get("year"),
            roll_number=roll_number,
            verification_method=method,
            verified=verified,
        )

        if document is not None:
            bucket = storage.bucket_name("documents")
            descriptor = storage.upload_file(bucket, f"documents/{user.id}", document)
            user.document_key = descriptor["key"]
            try:
                user.save(update_fields=["document_key"])
            except Exception:
                storage.remove_blob(bucket, descriptor["key"])
                raise

    logger.info(f"User registered: user={user.id}, verified={verified}, method={method}")
    return user


def login(email, password):
    """
    Returns (user, {"access", "refresh"}).
    """
    email = normalize_email(email)
    user = User.objects.filter(email__iexact=email).first()
    if user is not None:
        user = authenticate(username=user.username, password=password)

    if user is None:
        logger.warning(f"Failed login attempt: email={email}")
        raise ValidationError({"detail": ["Invalid credentials."]})

    if not (user.verified or user.is_superuser):
        logger.warning(f"Login refused for unverified user: user={user.id}")
        raise AccountNotVerified()

    refresh = RefreshToken.for_user(user)
    logger.info(f"User logged in: user={user.id}")
    return user, {"access": str(refresh.access_token), "refresh": str(refresh)}


def change_password(user, current_password, new_password):
    if not user.check_password(current_password):
        raise ValidationError({"current_password": ["Current password is incorrect."]})
    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    logger.info(f"Password changed: user={user.id}")


def request_password_reset(email):
    """
    Emails a reset link if the account exists; silent otherwise.
    """
    user = User.objects.filter(email__iexact=normalize_email(email), is_active=True).first()
    if user is None:
        return False

    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    link = f"{settings.PORTAL['FRONTEND_URL'].rstrip('/')}/reset-password/{uid}/{token}"

    send_mail(
        "Reset your portal password",
        f"Use this link to choose a new password:\n{link}\n\nIf you didn't ask for this, ignore this email.",
        None,
        [user.email],
        fail_silently=True,
    )
    logger.info(f"Password reset requested: user={user.id}")
    return True


def reset_password(uid, token, new_password):
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(uid)))
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        user = None

    if user is None or not default_token_generator.check_token(user, token):
        raise ValidationError({"token": ["Reset link is invalid or has expired."]})

    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    logger.info(f"Password reset completed: user={user.id}")
    return user
