# resources/views.py
from django.shortcuts import redirect
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import paginated_response
from core.permissions import ensure_admin
from core.serializers import IdListSerializer
from . import services
from .serializers import (
    AdminResourceSerializer,
    OwnResourceSerializer,
    RejectSerializer,
    ResourceSerializer,
    ResourceSubmitSerializer,
    ResourceUpdateSerializer,
)


def _submit(request):
    serializer = ResourceSubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    file = data.pop("file", None)

    resource = services.submit(request.user, data, file=file)
    return Response(
        {"message": "Submitted for review", "resource": OwnResourceSerializer(resource).data},
        status=status.HTTP_201_CREATED,
    )


# -----------------------------
# Public / submitter
# -----------------------------

class ResourceListCreateView(APIView):
    """
    GET  /api/resources/   approved resources (?q=&category=&sort=&page=&limit=)
    POST /api/resources/   submit a link
    """
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    throttle_scope = "resource-submit"

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.request.method == "GET":
            return []
        return super().get_throttles()

    def get(self, request):
        params = request.query_params
        qs = services.public_resources(
            q=params.get("q"),
            category=params.get("category"),
            sort=params.get("sort"),
        )
        return paginated_response(request, qs, ResourceSerializer)

    def post(self, request):
        return _submit(request)


class ResourceUploadView(APIView):
    """
    POST /api/resources/upload/ (multipart, field "file")
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]
    throttle_scope = "resource-submit"

    def post(self, request):
        return _submit(request)


class ResourceCategoriesView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(services.categories())


class MyResourcesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = services.list_resources(
            status=request.query_params.get("status"),
            sort=request.query_params.get("sort"),
            added_by=request.user,
        )
        return paginated_response(request, qs, OwnResourceSerializer)


class ResourceEditView(APIView):
    """
    PATCH /api/resources/{id}/  submitter edits title/description while pending
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        serializer = ResourceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        resource = services.update(request.user, pk, serializer.validated_data)
        return Response(OwnResourceSerializer(resource).data)


class ResourceFileView(APIView):
    """
    GET /api/resources/{id}/view/ and /download/ redirect to the stored blob.
    """
    permission_classes = [AllowAny]
    download = False

    def get(self, request, pk):
        resource = services.approved_file(pk)
        target = resource.file_download_url if self.download else resource.file_url
        return redirect(target)


# -----------------------------
# Admin
# -----------------------------

class AdminResourceListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = request.query_params
        qs = services.admin_resources(
            request.user,
            status=params.get("status"),
            q=params.get("q"),
            category=params.get("category"),
            sort=params.get("sort"),
        )
        return paginated_response(request, qs, AdminResourceSerializer)


class AdminResourceCountsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(services.counts(request.user))


class AdminResourceDetailView(APIView):
    """
    PUT/PATCH /api/admin/resources/{id}/   edit title/description
    DELETE    /api/admin/resources/{id}/   delete row + release blob
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        serializer = ResourceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        # the submitter path lives on /api/resources/{id}/
        ensure_admin(request.user)
        resource = services.update(request.user, pk, serializer.validated_data)
        return Response(AdminResourceSerializer(resource).data)

    def patch(self, request, pk):
        return self.put(request, pk)

    def delete(self, request, pk):
        return Response(services.delete(request.user, pk))


class AdminResourceApproveView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        resource = services.approve(request.user, pk)
        return Response({"message": "Approved", "resource": AdminResourceSerializer(resource).data})


class AdminResourceRejectView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        resource = services.reject(request.user, pk, serializer.validated_data["reason"])
        return Response({"message": "Rejected", "resource": AdminResourceSerializer(resource).data})


class AdminResourceBulkDeleteView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = IdListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(services.bulk_delete(request.user, serializer.validated_data["ids"]))
