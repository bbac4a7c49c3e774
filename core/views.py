import time

from django.conf import settings
from django.db import connection
from django.db.utils import OperationalError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework import status


class HealthCheckView(APIView):
    """
    GET /api/health/

    Uptime probe: runs a trivial query and reports latency.
    Answers 503 when the database cannot be reached.
    """
    permission_classes = [AllowAny]
    authentication_classes = []  # public endpoint

    def get(self, request, *args, **kwargs):
        start = time.monotonic()

        db_ok = True
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except OperationalError:
            db_ok = False

        duration_ms = int((time.monotonic() - start) * 1000)

        return Response(
            {
                "status": "ok" if db_ok else "degraded",
                "db": db_ok,
                "env": getattr(settings, "ENV", "unknown"),
                "latency_ms": duration_ms,
            },
            status=status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
