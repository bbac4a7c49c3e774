from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from events import serializers as event_serializers
from events.services import FeedbackAggregator


class SubmitFeedbackView(APIView):
    """
    POST /api/events/<event_id>/feedback/
    {
      "overall_rating": 4,
      "matrix_ratings": {"content": 5, "organization": 3},
      "opinion": "..."
    }
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = event_serializers.FeedbackInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        feedback = FeedbackAggregator.submit(
            event_id,
            request.user.pk,
            data["overall_rating"],
            matrix_ratings=data["matrix_ratings"],
            opinion=data["opinion"],
        )
        return Response(
            event_serializers.FeedbackSerializer(feedback).data,
            status=status.HTTP_201_CREATED,
        )
