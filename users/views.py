# users/views.py

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model

from .serializers import UserSerializer, UpdateProfileSerializer

User = get_user_model()


class UserViewSet(viewsets.GenericViewSet):
    """
    Standard User API
    """
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        """
        GET /api/users/me/
        PATCH /api/users/me/  (display_name, roll_no, student_class, section, mobile)
        """
        if request.method == 'PATCH':
            serializer = UpdateProfileSerializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
        return Response(UserSerializer(request.user).data)
