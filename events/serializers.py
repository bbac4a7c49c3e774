from rest_framework import serializers

from .dataclasses import TeamDetails, TeamMemberInput
from .models import Event, Feedback, Invitation, Registration


# -----------------------------------------
# OUTPUT
# -----------------------------------------
class EventSummarySerializer(serializers.ModelSerializer):
    team_size_limit = serializers.IntegerField(read_only=True)
    is_attendance_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "title",
            "date",
            "registration_status",
            "min_team_size",
            "max_team_size",
            "team_size_limit",
            "is_attendance_active",
            "is_feedback_open",
            "avg_rating",
            "feedback_count",
        ]


class RegistrationSerializer(serializers.ModelSerializer):
    """
    A registration with its roster. leader_id is the registering user.
    """
    leader_id = serializers.IntegerField(source="user_id", read_only=True)
    event_id = serializers.IntegerField(read_only=True)
    user_details = serializers.DictField(read_only=True)
    team_members = serializers.ListField(read_only=True)
    participant_ids = serializers.ListField(child=serializers.IntegerField(), read_only=True)
    team_size = serializers.IntegerField(read_only=True)
    effective_status = serializers.CharField(read_only=True)

    class Meta:
        model = Registration
        fields = [
            "id",
            "event_id",
            "leader_id",
            "user_details",
            "status",
            "effective_status",
            "team_name",
            "team_members",
            "participant_ids",
            "team_size",
            "pending_requests",
            "attendance",
            "feedback_map",
            "registered_at",
        ]
        read_only_fields = fields


class AvailableTeamSerializer(serializers.ModelSerializer):
    leader_id = serializers.IntegerField(source="user_id", read_only=True)
    leader_name = serializers.CharField(source="snapshot_name", read_only=True)
    team_size = serializers.IntegerField(read_only=True)
    team_size_limit = serializers.IntegerField(source="event.team_size_limit", read_only=True)

    class Meta:
        model = Registration
        fields = ["id", "team_name", "leader_id", "leader_name", "team_size", "team_size_limit", "status"]


class InvitationSerializer(serializers.ModelSerializer):
    event_id = serializers.IntegerField(read_only=True)
    registration_id = serializers.IntegerField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True)
    target_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Invitation
        fields = [
            "id",
            "kind",
            "event_id",
            "event_title",
            "team_name",
            "registration_id",
            "sender_id",
            "sender_name",
            "target_id",
            "target_name",
            "target_roll_no",
            "status",
            "created_at",
            "responded_at",
        ]
        read_only_fields = fields


class FeedbackSerializer(serializers.ModelSerializer):
    class Meta:
        model = Feedback
        fields = ["id", "event", "user", "registration", "overall_rating", "matrix_ratings", "opinion", "submitted_at"]
        read_only_fields = fields


# -----------------------------------------
# INPUT
# -----------------------------------------
class TeamMemberInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, allow_blank=True, required=False, default="")
    # May be left blank for a member with an account; the profile supplies it
    roll_no = serializers.CharField(max_length=32, allow_blank=True, required=False, default="")
    member_user_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class RegisterSerializer(serializers.Serializer):
    """
    Body of POST <event_id>/register/. No team_name means an individual
    registration.
    """
    team_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    team_members = TeamMemberInputSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        if attrs["team_members"] and not attrs["team_name"].strip():
            raise serializers.ValidationError({"team_name": "A team name is required when listing team members."})
        return attrs

    def team_details(self):
        data = self.validated_data
        if not data["team_name"].strip():
            return None
        return TeamDetails(
            team_name=data["team_name"],
            members=[
                TeamMemberInput(name=m["name"], roll_no=m["roll_no"], user_id=m["member_user_id"])
                for m in data["team_members"]
            ],
        )


class InviteSerializer(serializers.Serializer):
    target_user_id = serializers.IntegerField()


class RespondSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=["accept", "reject"])


class FeedbackInputSerializer(serializers.Serializer):
    # Range checks live in FeedbackAggregator so every caller gets them
    overall_rating = serializers.IntegerField()
    matrix_ratings = serializers.DictField(child=serializers.IntegerField(), required=False, default=dict)
    opinion = serializers.CharField(required=False, allow_blank=True, default="")
