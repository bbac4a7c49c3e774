from django.contrib.auth import get_user_model
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from events.exceptions import EventNotFound, RegistrationNotFound, UserNotFound
from events.models import Event, Registration
from events.serializers import (
    AvailableTeamSerializer,
    InvitationSerializer,
    InviteSerializer,
    RespondSerializer,
)
from events.services import InvitationBroker
from users.serializers import CandidateSerializer

User = get_user_model()


def _require_event(event_id):
    try:
        return Event.objects.get(pk=event_id)
    except Event.DoesNotExist:
        raise EventNotFound()


class StudentSearchView(APIView):
    """
    GET /api/events/students/search/?q=<name or roll number>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        term = request.query_params.get("q", "")
        candidates = InvitationBroker.search_candidates(term, exclude_user_id=request.user.pk)
        return Response(CandidateSerializer(candidates, many=True).data, status=status.HTTP_200_OK)


class EventInvitationsView(APIView):
    """
    POST /api/events/<event_id>/invitations/
    Leader invites a student: {"target_user_id": 12}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = _require_event(event_id)
        serializer = InviteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registration = Registration.objects.filter(event=event, user=request.user).first()
        if registration is None:
            raise RegistrationNotFound("You have not registered a team for this event.")

        target = User.objects.filter(pk=serializer.validated_data["target_user_id"]).first()
        if target is None:
            raise UserNotFound()

        invitation = InvitationBroker.invite(
            event.pk,
            registration.pk,
            request.user.pk,
            registration.snapshot_name,
            target.pk,
            target.name,
            target.roll_no,
        )
        return Response(InvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


class SentInvitationsView(APIView):
    """
    GET /api/events/<event_id>/invitations/sent/
    Invites and join requests of the caller's team.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        _require_event(event_id)
        invitations = InvitationBroker.sent_for_team(event_id, request.user.pk)
        return Response(InvitationSerializer(invitations, many=True).data, status=status.HTTP_200_OK)


class InviteStatusView(APIView):
    """
    GET /api/events/<event_id>/invitations/status/<user_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id, user_id):
        _require_event(event_id)
        return Response(
            {"user_id": user_id, "status": InvitationBroker.invite_status(event_id, user_id)},
            status=status.HTTP_200_OK,
        )


class PendingInvitationsView(APIView):
    """
    GET /api/events/invitations/pending/
    Everything waiting for the caller's answer. Clients poll this.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        invitations = InvitationBroker.pending_for_target(request.user.pk)
        return Response(InvitationSerializer(invitations, many=True).data, status=status.HTTP_200_OK)


class RespondInvitationView(APIView):
    """
    POST /api/events/invitations/<invitation_id>/respond/
    {"decision": "accept" | "reject"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, invitation_id):
        serializer = RespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        decision = serializer.validated_data["decision"]

        invitation = InvitationBroker.respond(invitation_id, decision, actor_id=request.user.pk)
        return Response({
            "success": True,
            "decision": decision,
            "invitation": InvitationSerializer(invitation).data if invitation is not None else None,
        }, status=status.HTTP_200_OK)


class AvailableTeamsView(APIView):
    """
    GET /api/events/<event_id>/teams/available/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        teams = InvitationBroker.available_teams(event_id, request.user.pk)
        return Response(AvailableTeamSerializer(teams, many=True).data, status=status.HTTP_200_OK)


class JoinRequestView(APIView):
    """
    POST /api/events/<event_id>/teams/<registration_id>/join-requests/
    Asking again returns the existing request.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id, registration_id):
        join_request = InvitationBroker.request_to_join(event_id, registration_id, request.user)
        return Response(InvitationSerializer(join_request).data, status=status.HTTP_201_CREATED)
