from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Notification
from .serializers import MarkReadSerializer, NotificationSerializer

TRUTHY = ("1", "true", "yes")


class MyNotificationsView(APIView):
    """
    The caller's team-formation inbox, newest first.

    GET ?unread=true lists only unread entries; unread_count always
    counts the whole inbox. POST {"ids": [...]} marks those read, an
    empty body marks everything read.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        inbox = Notification.objects.filter(recipient=request.user).select_related("event")
        entries = inbox
        if request.query_params.get("unread", "").lower() in TRUTHY:
            entries = inbox.unread()

        return Response({
            "unread_count": inbox.unread().count(),
            "results": NotificationSerializer(entries, many=True).data,
        })

    def post(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ids = serializer.validated_data.get("ids") or None
        marked = Notification.objects.filter(recipient=request.user).mark_read(ids)
        return Response({"marked_read": marked}, status=status.HTTP_200_OK)
