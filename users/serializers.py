from rest_framework import serializers

from core.serializers import StrictFieldsMixin
from .models import User


class MemberSerializer(serializers.ModelSerializer):
    """
    Compact user shape used inside teams, invitations and comments.
    """

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'gender', 'year', 'photo_url']


class UserSerializer(serializers.ModelSerializer):
    team_name = serializers.CharField(source='team.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'gender',
            'year',
            'role',
            'verified',
            'is_admin',
            'team',
            'team_name',
            'photo_url',
            'date_joined',
        ]


class MeSerializer(UserSerializer):
    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + [
            'roll_number',
            'verification_method',
            'is_leader',
        ]

    is_leader = serializers.SerializerMethodField()

    def get_is_leader(self, obj):
        return bool(obj.team_id) and obj.team.leader_id == obj.id


class UpdateProfileSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=120, required=False)
    year = serializers.IntegerField(min_value=1, max_value=4, required=False, allow_null=True)


class PhotoUploadSerializer(StrictFieldsMixin, serializers.Serializer):
    photo = serializers.FileField()

    def validate_photo(self, value):
        content_type = getattr(value, "content_type", "") or ""
        if not content_type.startswith("image/"):
            raise serializers.ValidationError("Photo must be an image.")
        if value.size > 5 * 1024 * 1024:
            raise serializers.ValidationError("Photo must be 5 MB or smaller.")
        return value


class SocialProfilesSerializer(StrictFieldsMixin, serializers.Serializer):
    social_profiles = serializers.DictField(
        child=serializers.CharField(max_length=300, allow_blank=True, allow_null=True)
    )
