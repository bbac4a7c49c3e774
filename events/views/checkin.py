from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from events.exceptions import MissingFields, NotAllowed, ValidationFailed
from events.services import CheckInValidator
from events.throttles import CheckInThrottle


def _is_missing(value):
    return value is None or (isinstance(value, str) and not value.strip())


class CheckInView(APIView):
    """
    POST /api/events/checkin/
    {"event_id": 1, "user_id": 7, "code": "4821"}  ->  {"success": true}
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [CheckInThrottle]

    def post(self, request):
        event_id = request.data.get("event_id")
        user_id = request.data.get("user_id")
        code = request.data.get("code")

        if _is_missing(event_id) or _is_missing(user_id) or _is_missing(code):
            raise MissingFields()

        try:
            event_id = int(event_id)
            user_id = int(user_id)
        except (TypeError, ValueError):
            raise ValidationFailed("event_id and user_id must be integers.", code="invalid_fields")

        if user_id != request.user.pk:
            raise NotAllowed("You can only check yourself in.")

        CheckInValidator.check_in(event_id, user_id, str(code))
        return Response({"success": True}, status=status.HTTP_200_OK)
