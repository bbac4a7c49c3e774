# events/exceptions.py
"""
Business-rule failures of the participation services.

Each failure is its own APIException subclass with a stable default_code,
so API consumers branch on errors.code instead of parsing messages.
Services raise these; views let them propagate to
core.exceptions.custom_exception_handler.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ParticipationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be completed."
    default_code = "participation_error"


# ─────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────

class ValidationFailed(ParticipationError):
    status_code = status.HTTP_400_BAD_REQUEST


class ProfileIncomplete(ValidationFailed):
    default_detail = "Complete your profile (roll number and mobile) before registering."
    default_code = "profile_incomplete"


class InvalidTeamDetails(ValidationFailed):
    default_detail = "Team details are invalid."
    default_code = "invalid_team_details"


class MissingFields(ValidationFailed):
    default_detail = "Missing required fields: event_id, user_id, code."
    default_code = "missing_fields"


class InvalidRating(ValidationFailed):
    default_detail = "Ratings must be whole numbers between 1 and 5."
    default_code = "invalid_rating"


# ─────────────────────────────────────────────────────────────
# Conflict
# ─────────────────────────────────────────────────────────────

class ConflictError(ParticipationError):
    status_code = status.HTTP_409_CONFLICT


class AlreadyRegistered(ConflictError):
    default_detail = "You are already registered for this event."
    default_code = "already_registered"


class DuplicateTeamName(ConflictError):
    default_detail = "This team name is already taken for this event."
    default_code = "duplicate_team_name"


class DuplicateParticipant(ConflictError):
    default_detail = "A participant of this team is already registered for this event."
    default_code = "duplicate_participant"


class TeamFull(ConflictError):
    default_detail = "This team is already full."
    default_code = "team_full"


class AlreadyCheckedIn(ConflictError):
    # The check-in contract answers 400, not 409
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "You have already checked in."
    default_code = "already_checked_in"


class TargetAlreadyInvitedOrPlaced(ConflictError):
    default_detail = "This student already has a pending invitation or a team for this event."
    default_code = "target_already_invited_or_placed"


class TargetAlreadyRegistered(ConflictError):
    default_detail = "This student is already registered for this event."
    default_code = "target_already_registered"


class FeedbackAlreadySubmitted(ConflictError):
    default_detail = "You have already submitted feedback for this event."
    default_code = "feedback_already_submitted"


# ─────────────────────────────────────────────────────────────
# Not found
# ─────────────────────────────────────────────────────────────

class NotFoundError(ParticipationError):
    status_code = status.HTTP_404_NOT_FOUND


class EventNotFound(NotFoundError):
    default_detail = "Event not found."
    default_code = "event_not_found"


class RegistrationNotFound(NotFoundError):
    default_detail = "Registration not found."
    default_code = "registration_not_found"


class InvitationNotFound(NotFoundError):
    default_detail = "Invitation not found."
    default_code = "invitation_not_found"


class UserNotFound(NotFoundError):
    default_detail = "Student not found."
    default_code = "user_not_found"


# ─────────────────────────────────────────────────────────────
# Authorization / state
# ─────────────────────────────────────────────────────────────

class IncorrectCode(ParticipationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Incorrect code. Please try again."
    default_code = "incorrect_code"


class NotRegistered(ParticipationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not registered for this event."
    default_code = "not_registered"


class NotAllowed(ParticipationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to do this."
    default_code = "not_allowed"


class RegistrationClosed(ParticipationError):
    default_detail = "Registrations are closed for this event."
    default_code = "registration_closed"


class AttendanceNotActive(ParticipationError):
    default_detail = "Attendance is not active for this event."
    default_code = "attendance_not_active"


class FeedbackNotOpen(ParticipationError):
    default_detail = "Feedback is not open for this event."
    default_code = "feedback_not_open"


class InvitationAlreadyResolved(ParticipationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This invitation has already been responded to."
    default_code = "invitation_already_resolved"
