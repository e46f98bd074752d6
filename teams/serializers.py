from rest_framework import serializers

from core.serializers import StrictFieldsMixin
from users.serializers import MemberSerializer
from .models import Invitation, JoinRequest, Team


# -------------------------------------------------------------------
# Input
# -------------------------------------------------------------------

class TeamCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=100)
    problem_statement_title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    problem_statement_description = serializers.CharField(required=False, allow_blank=True)
    logo = serializers.FileField(required=False)

    def validate_logo(self, value):
        content_type = getattr(value, "content_type", "") or ""
        if not content_type.startswith("image/"):
            raise serializers.ValidationError("Logo must be an image.")
        if value.size > 5 * 1024 * 1024:
            raise serializers.ValidationError("Logo must be 5 MB or smaller.")
        return value


class TeamUpdateSerializer(TeamCreateSerializer):
    name = serializers.CharField(max_length=100, required=False)


class InvitationCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    invitee_id = serializers.IntegerField(min_value=1)


# -------------------------------------------------------------------
# Output
# -------------------------------------------------------------------

class TeamSerializer(serializers.ModelSerializer):
    leader = MemberSerializer(read_only=True)
    members = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()
    pending_count = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            'id',
            'name',
            'leader',
            'members',
            'member_count',
            'pending_count',
            'problem_statement_title',
            'problem_statement_description',
            'logo_url',
            'created_at',
            'updated_at',
        ]

    def get_members(self, obj):
        return MemberSerializer(obj.members.all().order_by('id'), many=True).data

    def get_member_count(self, obj):
        count = getattr(obj, 'member_count', None)
        return count if isinstance(count, int) else obj.members.count()

    def get_pending_count(self, obj):
        count = getattr(obj, 'pending_count', None)
        return count if isinstance(count, int) else obj.join_requests.count()


class TeamDetailSerializer(TeamSerializer):
    """
    Adds the pending requesters when the leader is looking.
    """
    pending_requests = serializers.SerializerMethodField()

    class Meta(TeamSerializer.Meta):
        fields = TeamSerializer.Meta.fields + ['pending_requests']

    def get_pending_requests(self, obj):
        request = self.context.get('request')
        if request is None or obj.leader_id != request.user.id:
            return None
        users = [jr.user for jr in obj.join_requests.select_related('user')]
        return MemberSerializer(users, many=True).data


class JoinRequestSerializer(serializers.ModelSerializer):
    user = MemberSerializer(read_only=True)

    class Meta:
        model = JoinRequest
        fields = ['id', 'team', 'user', 'created_at']


class TeamSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Team
        fields = ['id', 'name', 'logo_url']


class InvitationSerializer(serializers.ModelSerializer):
    team = TeamSummarySerializer(read_only=True)
    inviter = MemberSerializer(read_only=True)
    invitee = MemberSerializer(read_only=True)

    class Meta:
        model = Invitation
        fields = ['id', 'team', 'inviter', 'invitee', 'status', 'created_at', 'updated_at']
