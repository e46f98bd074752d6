from rest_framework import serializers

from core.serializers import StrictFieldsMixin, TagsField
from .models import Resource


class ResourceSubmitSerializer(StrictFieldsMixin, serializers.Serializer):
    title = serializers.CharField(max_length=200)
    category = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    tags = TagsField(required=False)
    url = serializers.URLField(max_length=2048, required=False, allow_blank=True)
    file = serializers.FileField(required=False)


class ResourceUpdateSerializer(StrictFieldsMixin, serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class RejectSerializer(StrictFieldsMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ResourceSerializer(serializers.ModelSerializer):
    added_by_name = serializers.CharField(source="added_by.display_name", read_only=True, default=None)
    file = serializers.SerializerMethodField()

    class Meta:
        model = Resource
        fields = [
            "id",
            "title",
            "description",
            "category",
            "tags",
            "url",
            "file",
            "status",
            "added_by_name",
            "created_at",
            "updated_at",
        ]

    def get_file(self, obj):
        if not obj.file_key:
            return None
        return {
            "key": obj.file_key,
            "view_url": obj.file_url,
            "download_url": obj.file_download_url,
            "original_name": obj.file_name,
            "mime_type": obj.file_mime_type,
            "size": obj.file_size,
        }


class OwnResourceSerializer(ResourceSerializer):
    class Meta(ResourceSerializer.Meta):
        fields = ResourceSerializer.Meta.fields + ["rejection_reason"]


class AdminResourceSerializer(ResourceSerializer):
    added_by_email = serializers.CharField(source="added_by.email", read_only=True, default=None)
    approved_by_email = serializers.CharField(source="approved_by.email", read_only=True, default=None)

    class Meta(ResourceSerializer.Meta):
        fields = ResourceSerializer.Meta.fields + [
            "rejection_reason",
            "added_by",
            "added_by_email",
            "approved_by",
            "approved_by_email",
        ]
