from django.urls import path
from .views import (
    RegisterEventView,
    MyRegistrationView,
    EventRegistrationsView,
    StudentSearchView,
    EventInvitationsView,
    SentInvitationsView,
    InviteStatusView,
    PendingInvitationsView,
    RespondInvitationView,
    AvailableTeamsView,
    JoinRequestView,
    CheckInView,
    SubmitFeedbackView,
)

urlpatterns = [
    path("checkin/", CheckInView.as_view(), name="event-checkin"),
    path("students/search/", StudentSearchView.as_view(), name="student-search"),
    path("invitations/pending/", PendingInvitationsView.as_view(), name="invitation-pending"),
    path(
        "invitations/<int:invitation_id>/respond/",
        RespondInvitationView.as_view(),
        name="invitation-respond",
    ),

    path("<int:event_id>/register/", RegisterEventView.as_view(), name="event-register"),
    path("<int:event_id>/registration/", MyRegistrationView.as_view(), name="event-my-registration"),
    path("<int:event_id>/registrations/", EventRegistrationsView.as_view(), name="event-registrations"),

    path("<int:event_id>/invitations/", EventInvitationsView.as_view(), name="event-invitations"),
    path("<int:event_id>/invitations/sent/", SentInvitationsView.as_view(), name="event-invitations-sent"),
    path(
        "<int:event_id>/invitations/status/<int:user_id>/",
        InviteStatusView.as_view(),
        name="event-invite-status",
    ),

    path("<int:event_id>/teams/available/", AvailableTeamsView.as_view(), name="event-teams-available"),
    path(
        "<int:event_id>/teams/<int:registration_id>/join-requests/",
        JoinRequestView.as_view(),
        name="event-join-request",
    ),

    path("<int:event_id>/feedback/", SubmitFeedbackView.as_view(), name="event-feedback"),
]
