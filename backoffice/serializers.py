from rest_framework import serializers

from core.serializers import IdListSerializer, StrictFieldsMixin
from ideas.serializers import IdeaSerializer
from teams.serializers import TeamSerializer
from users.models import User
from users.serializers import MemberSerializer, UserSerializer


class AdminUserSerializer(UserSerializer):
    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + [
            'roll_number',
            'verification_method',
            'document_key',
            'admin_notes',
            'is_active',
            'last_login',
        ]


class AdminUserUpdateSerializer(StrictFieldsMixin, serializers.Serializer):
    verified = serializers.BooleanField(required=False)
    is_admin = serializers.BooleanField(required=False)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, required=False)
    password = serializers.CharField(min_length=8, required=False, write_only=True)
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class BulkFlagSerializer(IdListSerializer):
    value = serializers.BooleanField(required=False, default=True)


class AdminTeamDetailSerializer(TeamSerializer):
    pending_requests = serializers.SerializerMethodField()

    class Meta(TeamSerializer.Meta):
        fields = TeamSerializer.Meta.fields + ['pending_requests']

    def get_pending_requests(self, obj):
        users = [jr.user for jr in obj.join_requests.select_related('user').order_by('created_at')]
        return MemberSerializer(users, many=True).data


class AdminIdeaSerializer(IdeaSerializer):
    author_email = serializers.CharField(source='author.email', read_only=True)

    class Meta(IdeaSerializer.Meta):
        fields = IdeaSerializer.Meta.fields + ['author_email']


class SocialConfigSerializer(StrictFieldsMixin, serializers.Serializer):
    allowed_platforms = serializers.ListField(child=serializers.CharField(max_length=50), allow_empty=True)
