# teams/views.py
"""
Thin HTTP layer over teams.services. Views parse input and shape output;
every rule (leader-only, size cap, gender balance) lives in the service.
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from . import services
from .serializers import (
    InvitationCreateSerializer,
    InvitationSerializer,
    JoinRequestSerializer,
    TeamCreateSerializer,
    TeamDetailSerializer,
    TeamSerializer,
    TeamUpdateSerializer,
)


class TeamViewSet(viewsets.ViewSet):
    """
    /api/teams/...
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = r"\d+"

    def _detail(self, request, team, status_code=status.HTTP_200_OK):
        return Response(
            TeamDetailSerializer(team, context={"request": request}).data,
            status=status_code,
        )

    def list(self, request):
        teams = services.list_teams(q=request.query_params.get("q"))
        return Response(TeamSerializer(teams, many=True).data)

    def create(self, request):
        serializer = TeamCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        logo = data.pop("logo", None)

        team = services.create_team(request.user, logo=logo, **data)
        return self._detail(request, team, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return self._detail(request, services.get_team(pk))

    def update(self, request, pk=None):
        serializer = TeamUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        logo = data.pop("logo", None)

        team = services.edit_team(request.user, pk, data, logo=logo)
        return self._detail(request, team)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        services.delete_team(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="my-team")
    def my_team(self, request):
        team = services.my_team(request.user)
        if team is None:
            return Response(None)
        return self._detail(request, team)

    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        team = services.request_join(request.user, pk)
        return Response(TeamSerializer(team).data)

    @action(detail=True, methods=["post"], url_path="cancel-request")
    def cancel_request(self, request, pk=None):
        services.cancel_join_request(request.user, pk)
        return Response({"cancelled": True})

    @action(detail=True, methods=["get"])
    def requests(self, request, pk=None):
        join_requests = services.list_join_requests(request.user, pk)
        return Response(JoinRequestSerializer(join_requests, many=True).data)

    @action(detail=True, methods=["post"], url_path=r"approve/(?P<user_id>\d+)")
    def approve(self, request, pk=None, user_id=None):
        team = services.approve_join_request(request.user, pk, user_id)
        return self._detail(request, team)

    @action(detail=True, methods=["post"], url_path=r"reject/(?P<user_id>\d+)")
    def reject(self, request, pk=None, user_id=None):
        team = services.reject_join_request(request.user, pk, user_id)
        return self._detail(request, team)

    @action(detail=False, methods=["delete"], url_path="members/leave")
    def leave(self, request):
        services.leave_team(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["delete"], url_path=r"members/(?P<member_id>\d+)")
    def remove_member(self, request, pk=None, member_id=None):
        team = services.remove_member(request.user, pk, member_id)
        return self._detail(request, team)

    @action(detail=True, methods=["get"])
    def invitations(self, request, pk=None):
        invitations = services.list_team_invitations(
            request.user, pk, status=request.query_params.get("status")
        )
        return Response(InvitationSerializer(invitations, many=True).data)


class InvitationViewSet(viewsets.ViewSet):
    """
    /api/invitations/...
    """
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def create(self, request):
        serializer = InvitationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invitation = services.send_invitation(request.user, serializer.validated_data["invitee_id"])
        return Response(InvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        services.cancel_invitation(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def me(self, request):
        invitations = services.list_my_invitations(request.user)
        return Response(InvitationSerializer(invitations, many=True).data)

    @action(detail=False, methods=["get"])
    def count(self, request):
        return Response({"count": services.count_my_invitations(request.user)})

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        team = services.accept_invitation(request.user, pk)
        return Response(TeamDetailSerializer(team, context={"request": request}).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        invitation = services.reject_invitation(request.user, pk)
        return Response(InvitationSerializer(invitation).data)
