# ideas/views.py
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from . import services
from .serializers import (
    CommentCreateSerializer,
    CommentSerializer,
    IdeaCreateSerializer,
    IdeaSerializer,
)


class IdeaViewSet(viewsets.ViewSet):
    """
    GET    /api/ideas/                 all ideas, newest first (?q=, ?mine=1)
    POST   /api/ideas/                 post an idea
    GET    /api/ideas/{id}/            idea + comments (oldest first)
    DELETE /api/ideas/{id}/            author, or any admin
    POST   /api/ideas/{id}/comments/   add a comment
    """
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def list(self, request):
        mine = request.query_params.get("mine") in ("1", "true")
        ideas = services.list_ideas(
            q=request.query_params.get("q"),
            author=request.user if mine else None,
        )
        return Response(IdeaSerializer(ideas, many=True).data)

    def create(self, request):
        serializer = IdeaCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        idea = services.create_idea(request.user, serializer.validated_data)
        return Response(IdeaSerializer(idea).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        idea = services.get_idea(pk)
        return Response({
            "idea": IdeaSerializer(idea).data,
            "comments": CommentSerializer(services.comments_for(idea), many=True).data,
        })

    def destroy(self, request, pk=None):
        services.delete_idea(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def comments(self, request, pk=None):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.add_comment(request.user, pk, serializer.validated_data["text"])
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentViewSet(viewsets.ViewSet):
    """
    DELETE /api/comments/{id}/   author only
    """
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def destroy(self, request, pk=None):
        services.delete_comment(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
