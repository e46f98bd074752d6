from rest_framework import serializers

from core.serializers import StrictFieldsMixin
from .models import Update, UpdateRun


class UpdateWriteSerializer(StrictFieldsMixin, serializers.Serializer):
    title = serializers.CharField(max_length=300)
    url = serializers.URLField(max_length=2048, required=False, allow_blank=True)
    summary = serializers.CharField(required=False, allow_blank=True)
    published_at = serializers.DateTimeField(required=False, allow_null=True)
    pinned = serializers.BooleanField(required=False)
    is_public = serializers.BooleanField(required=False)


class CandidateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=300)
    url = serializers.CharField(max_length=2048, required=False, allow_blank=True)
    summary = serializers.CharField(required=False, allow_blank=True)
    published_at = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class IngestSerializer(StrictFieldsMixin, serializers.Serializer):
    """
    Without ``items`` the configured feeder is run instead.
    """
    items = CandidateSerializer(many=True, required=False)
    source = serializers.CharField(max_length=50, required=False)


class UpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Update
        fields = ['id', 'title', 'url', 'summary', 'published_at', 'source', 'pinned']


class AdminUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Update
        fields = [
            'id',
            'title',
            'url',
            'summary',
            'published_at',
            'source',
            'hash',
            'pinned',
            'is_public',
            'created_at',
            'updated_at',
        ]


class UpdateRunSerializer(serializers.ModelSerializer):
    class Meta:
        model = UpdateRun
        fields = [
            'id',
            'source',
            'started_at',
            'finished_at',
            'ok',
            'items_fetched',
            'items_inserted',
            'error_message',
        ]
