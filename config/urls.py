from django.urls import path, include
from core.views import HealthCheckView

urlpatterns = [
    path('api/users/', include('users.urls')),
    path('api/events/', include('events.urls')),
    path('api/notifications/', include('notifications.urls')),
    path("api/health/", HealthCheckView.as_view(), name="health-check"),
]
