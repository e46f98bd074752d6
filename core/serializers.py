from rest_framework import serializers

from .models import AdminLog


class StrictFieldsMixin:
    """
    Input serializers reject keys they don't declare instead of
    silently dropping them.
    """

    def validate(self, attrs):
        initial = getattr(self, "initial_data", None)
        if hasattr(initial, "keys"):
            unknown = sorted(set(initial.keys()) - set(self.fields.keys()))
            if unknown:
                raise serializers.ValidationError(
                    {key: ["Unknown field."] for key in unknown}
                )
        return super().validate(attrs)


class IdListSerializer(StrictFieldsMixin, serializers.Serializer):
    ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
        max_length=500,
    )


class AdminLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.CharField(source="actor.email", read_only=True, default=None)

    class Meta:
        model = AdminLog
        fields = [
            "id",
            "actor",
            "actor_email",
            "action",
            "target_type",
            "target_id",
            "meta",
            "created_at",
        ]


class TagsField(serializers.ListField):
    """
    A list of tags, or one comma-separated string of them.
    """
    child = serializers.CharField(max_length=50, allow_blank=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("max_length", 50)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [data]
        if isinstance(data, list):
            data = [
                part
                for item in data
                for part in (item.split(",") if isinstance(item, str) else [item])
            ]
        return super().to_internal_value(data)
