# users/views.py

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import PortalPagination
from . import services, social
from .models import User
from .serializers import (
    MeSerializer,
    PhotoUploadSerializer,
    SocialProfilesSerializer,
    UpdateProfileSerializer,
    UserSerializer,
)


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    GET /api/users/            directory of verified users (?q=, ?available=1)
    GET /api/users/{id}/       public profile
    GET/PATCH /api/users/me/   own profile
    POST/DELETE /api/users/me/photo/
    """
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = PortalPagination
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        if self.action == 'list':
            return services.directory(
                q=self.request.query_params.get("q"),
                available=self.request.query_params.get("available") in ("1", "true"),
            )
        return User.objects.select_related("team")

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        user = User.objects.select_related("team").get(pk=request.user.pk)

        if request.method == 'PATCH':
            serializer = UpdateProfileSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            user = services.update_profile(user, serializer.validated_data)

        return Response(MeSerializer(user).data)

    @action(detail=False, methods=['post', 'delete'], url_path='me/photo')
    def photo(self, request):
        user = User.objects.select_related("team").get(pk=request.user.pk)

        if request.method == 'DELETE':
            user = services.remove_photo(user)
            return Response(MeSerializer(user).data)

        serializer = PhotoUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.set_photo(user, serializer.validated_data["photo"])
        return Response(MeSerializer(user).data, status=status.HTTP_200_OK)


# -----------------------------
# Social profiles
# -----------------------------

class SocialConfigView(APIView):
    """
    GET /api/users/social/config/
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({
            "allowed_platforms": services.allowed_platforms(),
            "platforms": [
                {"key": key, "label": meta["label"], "example": meta["example"]}
                for key, meta in social.PLATFORMS.items()
            ],
        })


class MySocialProfilesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"social_profiles": services.visible_social_profiles(request.user)})

    def put(self, request):
        serializer = SocialProfilesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profiles = services.update_social_profiles(
            request.user, serializer.validated_data["social_profiles"]
        )
        return Response({"social_profiles": profiles})


class UserSocialProfilesView(APIView):
    """
    GET /api/users/social/{user_id}/  (teammates' links)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, user_id):
        user = services.get_public_user(user_id)
        return Response({
            "id": user.id,
            "name": user.name,
            "social_profiles": services.visible_social_profiles(user),
        })
