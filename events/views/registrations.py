from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.dataclasses import ProfileSnapshot
from events.exceptions import EventNotFound
from events.models import Event, Registration
from events.permissions import IsOrganizer
from events.serializers import RegisterSerializer, RegistrationSerializer
from events.services import RegistrationStore


class RegisterEventView(APIView):
    """
    POST /api/events/<event_id>/register/

    Body (all optional):
    {
      "team_name": "Falcons",
      "team_members": [{"name": "Asha", "roll_no": "CB.EN.U4AIE21003"}]
    }
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        registration_id = RegistrationStore.register(
            event_id,
            request.user.pk,
            ProfileSnapshot.from_user(request.user),
            serializer.team_details(),
        )

        registration = Registration.objects.prefetch_related("participants").get(pk=registration_id)
        return Response(RegistrationSerializer(registration).data, status=status.HTTP_201_CREATED)


class MyRegistrationView(APIView):
    """
    GET /api/events/<event_id>/registration/
    The caller's registration for the event, as leader or as team member.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        if not Event.objects.filter(pk=event_id).exists():
            raise EventNotFound()

        registration = RegistrationStore.find_for_participant(event_id, request.user.pk)
        if registration is None:
            return Response({"registered": False}, status=status.HTTP_200_OK)

        return Response({
            "registered": True,
            "role": "leader" if registration.user_id == request.user.pk else "member",
            "is_attended": registration.is_attended(request.user.pk),
            "has_feedback": registration.has_feedback(request.user.pk),
            "registration": RegistrationSerializer(registration).data,
        }, status=status.HTTP_200_OK)


class EventRegistrationsView(APIView):
    """
    GET /api/events/<event_id>/registrations/
    - Organizers only.
    """
    permission_classes = [IsAuthenticated, IsOrganizer]

    def get(self, request, event_id):
        registrations = RegistrationStore.list_for_event(event_id)
        serializer = RegistrationSerializer(registrations, many=True)
        return Response({
            "count": len(registrations),
            "results": serializer.data,
        }, status=status.HTTP_200_OK)
