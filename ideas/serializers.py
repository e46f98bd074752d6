from rest_framework import serializers

from core.serializers import StrictFieldsMixin, TagsField
from users.models import User
from .models import Comment, Idea


class AuthorSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'year', 'photo_url']


class IdeaCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    tags = TagsField(required=False)


class CommentCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    text = serializers.CharField(max_length=2000)


class IdeaSerializer(serializers.ModelSerializer):
    author = AuthorSerializer(read_only=True)
    comment_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Idea
        fields = [
            'id',
            'title',
            'description',
            'tags',
            'author',
            'comment_count',
            'created_at',
            'updated_at',
        ]


class CommentSerializer(serializers.ModelSerializer):
    author = AuthorSerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'idea', 'text', 'author', 'created_at']
