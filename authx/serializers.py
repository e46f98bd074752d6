from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from core.serializers import StrictFieldsMixin
from users.models import User


class RegisterSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    name = serializers.CharField(max_length=120)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES)
    year = serializers.IntegerField(min_value=1, max_value=4, required=False, allow_null=True)
    roll_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    verification_method = serializers.ChoiceField(
        choices=User.VERIFICATION_CHOICES,
        required=False,
        default=User.VERIFY_ROLL_NUMBER,
    )
    document = serializers.FileField(required=False)

    def validate_password(self, value):
        validate_password(value)
        return value

    def validate_document(self, value):
        if value.size > 5 * 1024 * 1024:
            raise serializers.ValidationError("Document must be 5 MB or smaller.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        method = attrs.get("verification_method")
        if method == User.VERIFY_ROLL_NUMBER and not (attrs.get("roll_number") or "").strip():
            raise serializers.ValidationError({"roll_number": ["Roll number is required."]})
        if method == User.VERIFY_DOCUMENT and not attrs.get("document"):
            raise serializers.ValidationError({"document": ["ID card document is required."]})
        return attrs


class LoginSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class CheckEmailSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()


class ChangePasswordSerializer(StrictFieldsMixin, serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_new_password(self, value):
        validate_password(value)
        return value


class ForgotPasswordSerializer(CheckEmailSerializer):
    pass


class ResetPasswordSerializer(StrictFieldsMixin, serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    password = serializers.CharField(write_only=True, min_length=8)

    def validate_password(self, value):
        validate_password(value)
        return value
