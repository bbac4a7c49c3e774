from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    event_id = serializers.IntegerField(read_only=True)
    invitation_id = serializers.IntegerField(read_only=True, allow_null=True)
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "kind",
            "title",
            "message",
            "team_name",
            "event_id",
            "invitation_id",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class MarkReadSerializer(serializers.Serializer):
    """No ids means every unread entry of the caller."""
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, allow_empty=True)
