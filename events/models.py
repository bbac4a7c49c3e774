# events/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .sanitizers import roll_no_key, team_name_key


class Event(models.Model):
    """
    The slice of an event this backend reads and writes.

    Event CRUD belongs to the organizer tooling; participation only reads the
    registration window, team bounds, attendance code and feedback switch,
    and maintains the rolling rating aggregate.
    """
    REGISTRATION_UPCOMING = "upcoming"
    REGISTRATION_OPEN = "open"
    REGISTRATION_CLOSED = "closed"

    REGISTRATION_STATUS_CHOICES = [
        (REGISTRATION_UPCOMING, "Upcoming"),
        (REGISTRATION_OPEN, "Open"),
        (REGISTRATION_CLOSED, "Closed"),
    ]

    title = models.CharField(max_length=255)
    date = models.DateTimeField()

    min_team_size = models.PositiveIntegerField(default=1)
    max_team_size = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Leader included. Empty falls back to PARTICIPATION_DEFAULT_MAX_TEAM_SIZE.",
    )
    registration_status = models.CharField(
        max_length=16,
        choices=REGISTRATION_STATUS_CHOICES,
        default=REGISTRATION_UPCOMING,
    )

    # Empty means attendance is not running
    attendance_code = models.CharField(max_length=32, blank=True, default="")
    is_feedback_open = models.BooleanField(default=False)

    # Rolling aggregate, written only by FeedbackAggregator
    avg_rating = models.FloatField(default=0)
    feedback_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["date"], name="event_date_idx"),
            models.Index(fields=["registration_status"], name="event_reg_status_idx"),
        ]

    def __str__(self):
        return self.title

    @property
    def team_size_limit(self):
        if self.max_team_size:
            return self.max_team_size
        return getattr(settings, "PARTICIPATION_DEFAULT_MAX_TEAM_SIZE", 10)

    @property
    def is_attendance_active(self):
        return bool(self.attendance_code)

    def is_registration_open(self, now=None):
        now = now or timezone.now()
        return self.registration_status == self.REGISTRATION_OPEN and now < self.date


class Registration(models.Model):
    """
    One participation record per (event, leader).

    Individual registrations have no team name. Team registrations carry
    their roster as RegistrationParticipant rows; participant_ids and
    team_members are read from there so the roster has a single source.
    """
    STATUS_FORMING = "forming"
    STATUS_REGISTERED = "registered"
    STATUS_ATTENDED = "attended"

    STATUS_CHOICES = [
        (STATUS_FORMING, "Forming"),
        (STATUS_REGISTERED, "Registered"),
        (STATUS_ATTENDED, "Attended"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="led_registrations",
    )

    # Profile snapshot taken at registration time
    snapshot_name = models.CharField(max_length=150)
    snapshot_roll_no = models.CharField(max_length=32)
    snapshot_class = models.CharField(max_length=32)
    snapshot_section = models.CharField(max_length=8)
    snapshot_mobile = models.CharField(max_length=20)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_REGISTERED)

    team_name = models.CharField(max_length=100, blank=True, default="")
    team_name_key = models.CharField(max_length=100, blank=True, default="", editable=False)

    # User ids (as ints) waiting for the leader's answer; a set, mutated under row lock
    pending_requests = models.JSONField(default=list, blank=True)

    # participant id (str) -> True
    attendance = models.JSONField(default=dict, blank=True)
    feedback_submitted = models.BooleanField(default=False)  # legacy, pre feedback_map
    feedback_map = models.JSONField(default=dict, blank=True)

    registered_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_registration_event_leader"),
            models.UniqueConstraint(
                fields=["event", "team_name_key"],
                condition=~Q(team_name_key=""),
                name="uniq_registration_event_team_name",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "registered_at"], name="reg_event_registered_idx"),
        ]

    def __str__(self):
        label = self.team_name or self.snapshot_name
        return f"{label} @ {self.event_id}"

    def save(self, *args, **kwargs):
        self.team_name_key = team_name_key(self.team_name)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "team_name" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"team_name_key"}
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Roster views
    # ------------------------------------------------------------------

    @property
    def is_team(self):
        return bool(self.team_name)

    @property
    def user_details(self):
        return {
            "name": self.snapshot_name,
            "roll_no": self.snapshot_roll_no,
            "class": self.snapshot_class,
            "section": self.snapshot_section,
            "mobile": self.snapshot_mobile,
        }

    def _members(self):
        return [
            p for p in self.participants.all()
            if p.role == RegistrationParticipant.ROLE_MEMBER
        ]

    @property
    def team_members(self):
        return [
            {"name": p.name, "roll_no": p.roll_no, "member_user_id": p.user_id}
            for p in sorted(self._members(), key=lambda p: (p.joined_at, p.pk))
        ]

    @property
    def participant_ids(self):
        """Leader first, then members that have an account, in joining order."""
        members = sorted(self._members(), key=lambda p: (p.joined_at, p.pk))
        return [self.user_id] + [p.user_id for p in members if p.user_id is not None]

    @property
    def team_size(self):
        return 1 + len(self._members())

    # ------------------------------------------------------------------
    # Derived participation state
    # ------------------------------------------------------------------

    def is_attended(self, user_id):
        """
        Attendance map first; the legacy status field only counts for
        individual registrations, where it is the same person.
        """
        if self.attendance.get(str(user_id)):
            return True
        if not self.is_team and user_id == self.user_id:
            return self.status == self.STATUS_ATTENDED
        return False

    def has_feedback(self, user_id):
        if self.feedback_map.get(str(user_id)):
            return True
        if not self.is_team and user_id == self.user_id:
            return self.feedback_submitted
        return False

    @property
    def effective_status(self):
        if self.status == self.STATUS_ATTENDED or self.attendance.get(str(self.user_id)):
            return self.STATUS_ATTENDED
        return self.status


class RegistrationParticipant(models.Model):
    """
    A seat on a registration: the leader or a team member.

    The unique constraints are what keep a roll number, and an account, in
    at most one registration per event.
    """
    ROLE_LEADER = "leader"
    ROLE_MEMBER = "member"

    ROLE_CHOICES = [
        (ROLE_LEADER, "Team Leader"),
        (ROLE_MEMBER, "Member"),
    ]

    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="participants")
    # Denormalized from registration so the constraints can be event-wide
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="participants")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="event_participations",
        help_text="Empty for members listed by the leader without an account",
    )
    name = models.CharField(max_length=150)
    roll_no = models.CharField(max_length=32)
    roll_no_key = models.CharField(max_length=32, editable=False)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "roll_no_key"], name="uniq_participant_event_roll"),
            models.UniqueConstraint(
                fields=["event", "user"],
                condition=Q(user__isnull=False),
                name="uniq_participant_event_user",
            ),
        ]
        indexes = [
            models.Index(fields=["registration", "joined_at"], name="participant_reg_joined_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.roll_no}) in {self.registration_id}"

    def save(self, *args, **kwargs):
        self.roll_no_key = roll_no_key(self.roll_no)
        super().save(*args, **kwargs)


class Invitation(models.Model):
    """
    Shared envelope of the two team-formation messages.

    - invite:  the leader (sender) offers the target a seat.
    - request: a student (sender) asks the leader (target) for a seat.

    Rejected invitations are deleted, so any stored row is pending or
    accepted. Use as_variant() to get the TeamInvite / JoinRequest view.
    """
    KIND_INVITE = "invite"
    KIND_REQUEST = "request"

    KIND_CHOICES = [
        (KIND_INVITE, "Invite"),
        (KIND_REQUEST, "Join request"),
    ]

    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
    ]

    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="invitations")
    event_title = models.CharField(max_length=255)
    team_name = models.CharField(max_length=100)
    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="invitations")

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_invitations",
    )
    sender_name = models.CharField(max_length=150)
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_invitations",
    )
    target_name = models.CharField(max_length=150)
    # Only invites embed it; requests resolve it from the requester's profile
    target_roll_no = models.CharField(max_length=32, blank=True, default="")

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "target"],
                condition=Q(kind="invite"),
                name="uniq_invite_event_target",
            ),
            models.UniqueConstraint(
                fields=["event", "sender", "registration"],
                condition=Q(kind="request"),
                name="uniq_request_event_requester_team",
            ),
        ]
        indexes = [
            models.Index(fields=["target", "status"], name="invitation_target_status_idx"),
            models.Index(fields=["registration", "created_at"], name="invitation_reg_created_idx"),
        ]

    def __str__(self):
        return f"{self.kind} {self.sender_id}->{self.target_id} ({self.team_name}, {self.status})"

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING

    def as_variant(self):
        variant = INVITATION_VARIANTS[self.kind]
        if type(self) is variant:
            return self
        field_names = [f.attname for f in self._meta.concrete_fields]
        return variant.from_db(self._state.db, field_names, [getattr(self, f) for f in field_names])

    def resolve_member(self):
        """(user_id, name, roll_no) of the student who joins on acceptance."""
        return self.as_variant().resolve_member()


class TeamInviteManager(models.Manager):
    def get_queryset(self):
        return super().get_queryset().filter(kind=Invitation.KIND_INVITE)


class JoinRequestManager(models.Manager):
    def get_queryset(self):
        return super().get_queryset().filter(kind=Invitation.KIND_REQUEST)


class TeamInvite(Invitation):
    objects = TeamInviteManager()

    class Meta:
        proxy = True

    def save(self, *args, **kwargs):
        self.kind = Invitation.KIND_INVITE
        super().save(*args, **kwargs)

    @property
    def leader_id(self):
        return self.sender_id

    def resolve_member(self):
        return self.target_id, self.target_name, self.target_roll_no


class JoinRequest(Invitation):
    objects = JoinRequestManager()

    class Meta:
        proxy = True

    def save(self, *args, **kwargs):
        self.kind = Invitation.KIND_REQUEST
        super().save(*args, **kwargs)

    @property
    def leader_id(self):
        return self.target_id

    @property
    def requester_id(self):
        return self.sender_id

    def resolve_member(self):
        # Live lookup: the envelope does not carry the requester's roll number
        return self.sender_id, self.sender_name, self.sender.roll_no


INVITATION_VARIANTS = {
    Invitation.KIND_INVITE: TeamInvite,
    Invitation.KIND_REQUEST: JoinRequest,
}


class Feedback(models.Model):
    """
    Feedback from a participant of an event, at most one per participant.
    """
    MATRIX_CRITERIA = (
        "content",
        "activities",
        "interaction",
        "organization",
        "enjoyment",
        "knowledgeable",
    )

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="feedbacks")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="event_feedbacks",
    )
    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="feedbacks")
    overall_rating = models.PositiveSmallIntegerField()
    matrix_ratings = models.JSONField(default=dict, blank=True)
    opinion = models.TextField(blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-submitted_at"]
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_feedback_event_user"),
            models.CheckConstraint(
                condition=Q(overall_rating__gte=1) & Q(overall_rating__lte=5),
                name="feedback_overall_rating_range",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "submitted_at"], name="feedback_event_submitted_idx"),
        ]

    def __str__(self):
        return f"{self.event_id} - {self.user_id} ({self.overall_rating})"
