# backoffice/views.py
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import PortalPagination
from core.serializers import AdminLogSerializer, IdListSerializer
from teams.serializers import TeamSerializer
from . import services
from .serializers import (
    AdminIdeaSerializer,
    AdminTeamDetailSerializer,
    AdminUserSerializer,
    AdminUserUpdateSerializer,
    BulkFlagSerializer,
    SocialConfigSerializer,
)


def _ok(data, status_code=status.HTTP_200_OK):
    return Response({"meta": {"success": True}, "data": data}, status=status_code)


def _page(request, queryset, serializer_class):
    paginator = PortalPagination()
    page = paginator.paginate_queryset(queryset, request)
    return _ok(paginator.get_paginated_response(serializer_class(page, many=True).data).data)


class AdminBaseView(APIView):
    permission_classes = [IsAuthenticated]


class MetricsView(AdminBaseView):
    def get(self, request):
        return _ok(services.metrics(request.user))


# -----------------------------
# Users
# -----------------------------

class UserListView(AdminBaseView):
    """
    GET /api/admin/users/?q=&verified=&admin=&role=&sort=&page=&limit=
    """

    def get(self, request):
        params = request.query_params
        qs = services.list_users(
            request.user,
            q=params.get("q"),
            verified=params.get("verified"),
            is_admin=params.get("admin"),
            role=params.get("role"),
            sort=params.get("sort"),
        )
        return _page(request, qs, AdminUserSerializer)


class UserDetailView(AdminBaseView):
    def get(self, request, pk):
        return _ok(AdminUserSerializer(services.get_user(request.user, pk)).data)

    def put(self, request, pk):
        serializer = AdminUserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.update_user(request.user, pk, serializer.validated_data)
        return _ok(AdminUserSerializer(user).data)

    def patch(self, request, pk):
        return self.put(request, pk)

    def delete(self, request, pk):
        services.delete_user(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserBulkVerifyView(AdminBaseView):
    def post(self, request):
        serializer = BulkFlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return _ok(services.bulk_verify(request.user, data["ids"], data["value"]))


class UserBulkAdminView(AdminBaseView):
    def post(self, request):
        serializer = BulkFlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return _ok(services.bulk_admin(request.user, data["ids"], data["value"]))


class UserBulkDeleteView(AdminBaseView):
    def post(self, request):
        serializer = IdListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return _ok(services.bulk_delete_users(request.user, serializer.validated_data["ids"]))


# -----------------------------
# Teams / ideas / logs
# -----------------------------

class TeamListView(AdminBaseView):
    def get(self, request):
        qs = services.list_teams(
            request.user,
            leader=request.query_params.get("leader"),
            q=request.query_params.get("q"),
        )
        return _page(request, qs, TeamSerializer)


class TeamDetailView(AdminBaseView):
    def get(self, request, pk):
        return _ok(AdminTeamDetailSerializer(services.get_team(request.user, pk)).data)


class IdeaListView(AdminBaseView):
    def get(self, request):
        qs = services.list_ideas(request.user, q=request.query_params.get("q"))
        return _page(request, qs, AdminIdeaSerializer)


class IdeaDetailView(AdminBaseView):
    def delete(self, request, pk):
        services.delete_idea(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LogListView(AdminBaseView):
    def get(self, request):
        qs = services.list_logs(
            request.user,
            action=request.query_params.get("action"),
            target_type=request.query_params.get("target_type"),
        )
        return _page(request, qs, AdminLogSerializer)


class SocialConfigView(AdminBaseView):
    """
    GET/PUT /api/admin/social-config/
    """

    def get(self, request):
        return _ok(services.social_config(request.user))

    def put(self, request):
        serializer = SocialConfigSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return _ok(services.update_social_config(request.user, serializer.validated_data["allowed_platforms"]))
