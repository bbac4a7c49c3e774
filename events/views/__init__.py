from .registrations import RegisterEventView, MyRegistrationView, EventRegistrationsView
from .invitations import (
    StudentSearchView,
    EventInvitationsView,
    SentInvitationsView,
    InviteStatusView,
    PendingInvitationsView,
    RespondInvitationView,
    AvailableTeamsView,
    JoinRequestView,
)
from .checkin import CheckInView
from .feedback import SubmitFeedbackView
