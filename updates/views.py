# updates/views.py
import hmac

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import NotAuthorized
from core.permissions import ensure_admin
from core.pagination import paginated_response
from core.serializers import IdListSerializer
from . import services
from .serializers import (
    AdminUpdateSerializer,
    IngestSerializer,
    UpdateRunSerializer,
    UpdateSerializer,
    UpdateWriteSerializer,
)


class PublicUpdateListView(APIView):
    """
    GET /api/updates/?q=&pinned=1&page=&limit=
    """
    permission_classes = [AllowAny]

    def get(self, request):
        qs = services.public_updates(
            q=request.query_params.get("q"),
            pinned_only=request.query_params.get("pinned") in ("1", "true"),
        )
        return paginated_response(request, qs, UpdateSerializer)


# -----------------------------
# Admin
# -----------------------------

class AdminUpdateListView(APIView):
    """
    GET  /api/admin/updates/   all updates (?q=&sort=)
    POST /api/admin/updates/   create
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = services.admin_updates(
            request.user,
            q=request.query_params.get("q"),
            sort=request.query_params.get("sort"),
        )
        return paginated_response(request, qs, AdminUpdateSerializer)

    def post(self, request):
        serializer = UpdateWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update = services.create_update(request.user, serializer.validated_data)
        return Response(AdminUpdateSerializer(update).data, status=status.HTTP_201_CREATED)


class AdminUpdateDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        serializer = UpdateWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update = services.edit_update(request.user, pk, serializer.validated_data)
        return Response(AdminUpdateSerializer(update).data)

    def patch(self, request, pk):
        return self.put(request, pk)

    def delete(self, request, pk):
        services.delete_update(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminUpdateNotifyView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = IdListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(services.admin_notify(request.user, serializer.validated_data["ids"]))


class AdminUpdateRunsView(APIView):
    """
    GET  /api/admin/updates/runs/   recent feeder runs
    POST /api/admin/updates/runs/   run the feeder now
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        runs = services.recent_runs(request.user)
        return Response(UpdateRunSerializer(runs, many=True).data)

    def post(self, request):
        ensure_admin(request.user)
        return Response(services.run_feeder())


class FeederIngestView(APIView):
    """
    POST /api/admin/updates/ingest/

    For external schedulers: authenticated by the X-Feeder-Secret header,
    not by a user session.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        secret = settings.PORTAL["UPDATES_FEEDER_SECRET"]
        provided = request.headers.get("X-Feeder-Secret", "")
        if not secret or not hmac.compare_digest(provided.encode(), secret.encode()):
            raise NotAuthorized("Invalid feeder secret.")

        serializer = IngestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if "items" in data:
            result = services.ingest_candidates(data["items"], source=data.get("source"))
        else:
            result = services.run_feeder(source=data.get("source"))
        return Response(result)
