# events/services/invitation_broker.py
"""
InvitationBroker: team formation after registration.

Leaders invite students, students ask leaders to join, and whoever an
Invitation is addressed to accepts or rejects it. Acceptance adds the
student to the team roster atomically with marking the invitation.

Lock order is always invitation row, then registration row.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.db import atomic_with_retry
from events.exceptions import (
    AlreadyRegistered,
    DuplicateParticipant,
    EventNotFound,
    InvalidTeamDetails,
    InvitationAlreadyResolved,
    InvitationNotFound,
    NotAllowed,
    ProfileIncomplete,
    RegistrationNotFound,
    TargetAlreadyInvitedOrPlaced,
    TargetAlreadyRegistered,
    TeamFull,
    ValidationFailed,
)
from events.models import (
    Event,
    Invitation,
    JoinRequest,
    Registration,
    RegistrationParticipant,
    TeamInvite,
)
from events.sanitizers import roll_no_key, sanitize_member_name
from events.services.registration_store import RegistrationStore
from events.signals import invitation_created, invitation_responded
from events.state_machine import advance

logger = logging.getLogger("participation.events")

User = get_user_model()

DECISION_ACCEPT = "accept"
DECISION_REJECT = "reject"
DECISIONS = (DECISION_ACCEPT, DECISION_REJECT)

INVITE_STATUS_AVAILABLE = "available"


class InvitationBroker:

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    @staticmethod
    def search_candidates(term, exclude_user_id=None):
        """
        Verified students whose name or roll number contains term.

        Terms shorter than PARTICIPATION_SEARCH_MIN_LENGTH return nothing.
        """
        term = (term or "").strip()
        if len(term) < settings.PARTICIPATION_SEARCH_MIN_LENGTH:
            return []

        queryset = User.objects.filter(is_verified=True, is_active=True).filter(
            Q(display_name__icontains=term) | Q(roll_no__icontains=term)
        )
        if exclude_user_id is not None:
            queryset = queryset.exclude(pk=exclude_user_id)
        return list(queryset.order_by("display_name", "pk")[:settings.PARTICIPATION_SEARCH_LIMIT])

    @staticmethod
    def available_teams(event_id, excluding_user_id):
        """
        Teams of the event a student could still ask to join: named, not
        full, request queue not full, and not involving the student already.
        """
        try:
            event = Event.objects.get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound()

        limit = event.team_size_limit
        registrations = (
            Registration.objects
            .filter(event=event)
            .exclude(team_name="")
            .select_related("event")
            .prefetch_related("participants")
            .order_by("registered_at", "pk")
        )
        return [
            registration for registration in registrations
            if registration.team_size < limit
            and len(registration.pending_requests) < limit
            and excluding_user_id not in registration.participant_ids
            and excluding_user_id not in registration.pending_requests
        ]

    @staticmethod
    def pending_for_target(user_id):
        return list(
            Invitation.objects
            .filter(target_id=user_id, status=Invitation.STATUS_PENDING)
            .select_related("event")
            .order_by("-created_at")
        )

    @staticmethod
    def sent_for_team(event_id, leader_id):
        """Everything addressed to or sent by the leader's team, newest first."""
        registration = Registration.objects.filter(event_id=event_id, user_id=leader_id).first()
        if registration is None:
            return []
        return list(registration.invitations.order_by("-created_at"))

    @staticmethod
    def invite_status(event_id, target_user_id):
        """'available', 'pending' or 'accepted' for the target's invite."""
        invite = TeamInvite.objects.filter(event_id=event_id, target_id=target_user_id).first()
        if invite is None:
            return INVITE_STATUS_AVAILABLE
        return invite.status

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    @staticmethod
    @atomic_with_retry
    def invite(event_id, team_registration_id, sender_id, sender_name, target_user_id, target_name, target_roll_no):
        """
        Leader offers target_user_id a seat on their team.

        One invite per (event, target): a second one, from any team, is
        refused while the first is pending or accepted.
        """
        try:
            event = Event.objects.get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound()

        registration = Registration.objects.filter(pk=team_registration_id, event=event).first()
        if registration is None:
            raise RegistrationNotFound()
        if registration.user_id != sender_id:
            raise NotAllowed("Only the team leader can send invitations.")
        if not registration.is_team:
            raise InvalidTeamDetails("Individual registrations cannot invite members.")

        existing = TeamInvite.objects.filter(event=event, target_id=target_user_id).first()
        if existing is not None:
            if existing.is_pending:
                raise TargetAlreadyInvitedOrPlaced("This student already has a pending invitation for this event.")
            raise TargetAlreadyInvitedOrPlaced("This student has already joined a team for this event.")

        if RegistrationStore.find_for_participant(event.pk, target_user_id) is not None:
            raise TargetAlreadyRegistered()

        try:
            with transaction.atomic():
                invitation = TeamInvite.objects.create(
                    event=event,
                    event_title=event.title,
                    team_name=registration.team_name,
                    registration=registration,
                    sender_id=sender_id,
                    sender_name=sanitize_member_name(sender_name) or "Unknown",
                    target_id=target_user_id,
                    target_name=sanitize_member_name(target_name) or "Unknown",
                    target_roll_no=(target_roll_no or "").strip(),
                )
        except IntegrityError:
            raise TargetAlreadyInvitedOrPlaced()

        transaction.on_commit(lambda: invitation_created.send(sender=Invitation, invitation=invitation))
        logger.info(
            "Invitation sent: invitation=%s, event=%s, team=%r, sender=%s, target=%s",
            invitation.pk, event.pk, registration.team_name, sender_id, target_user_id,
        )
        return invitation

    @staticmethod
    @atomic_with_retry
    def request_to_join(event_id, team_registration_id, requester, event_title=None):
        """
        Student asks the leader of a team for a seat.

        Idempotent: asking the same team twice returns the existing request.
        The requester joins pending_requests of the team.
        """
        try:
            event = Event.objects.get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound()

        if not Registration.objects.filter(pk=team_registration_id, event=event).exists():
            raise RegistrationNotFound()
        registration = RegistrationStore.lock(team_registration_id)

        if not registration.is_team:
            raise InvalidTeamDetails("This registration is not a team.")
        if RegistrationStore.find_for_participant(event.pk, requester.pk) is not None:
            raise AlreadyRegistered()

        # get_or_create falls back to a get when a concurrent insert wins
        request, created = JoinRequest.objects.get_or_create(
            event=event,
            sender=requester,
            registration=registration,
            defaults={
                "event_title": event_title or event.title,
                "team_name": registration.team_name,
                "sender_name": sanitize_member_name(requester.name) or "Unknown",
                "target_id": registration.user_id,
                "target_name": registration.snapshot_name,
            },
        )

        if requester.pk not in registration.pending_requests:
            registration.pending_requests = registration.pending_requests + [requester.pk]
            registration.save(update_fields=["pending_requests"])

        if created:
            transaction.on_commit(lambda: invitation_created.send(sender=Invitation, invitation=request))
            logger.info(
                "Join request sent: invitation=%s, event=%s, team=%r, requester=%s",
                request.pk, event.pk, registration.team_name, requester.pk,
            )
        return request

    # ------------------------------------------------------------------
    # Responding
    # ------------------------------------------------------------------

    @staticmethod
    def respond(invitation_id, decision, actor_id=None):
        """
        Accept or reject an invitation or join request.

        actor_id, when given, must be the invitation's target. Returns the
        accepted invitation, or None when it was rejected (and deleted).
        """
        if decision not in DECISIONS:
            raise ValidationFailed("Decision must be 'accept' or 'reject'.", code="invalid_decision")
        return InvitationBroker._respond(invitation_id, decision, actor_id)

    @staticmethod
    @atomic_with_retry
    def _respond(invitation_id, decision, actor_id):
        invitation = (
            Invitation.objects
            .select_for_update()
            .filter(pk=invitation_id)
            .first()
        )
        if invitation is None:
            raise InvitationNotFound()
        if actor_id is not None and invitation.target_id != actor_id:
            raise NotAllowed("Only the recipient can respond to this invitation.")
        if not invitation.is_pending:
            raise InvitationAlreadyResolved()

        invitation = invitation.as_variant()
        registration = RegistrationStore.lock(invitation.registration_id)

        if decision == DECISION_REJECT:
            InvitationBroker._reject(invitation, registration)
            return None
        return InvitationBroker._accept(invitation, registration)

    @staticmethod
    def _reject(invitation, registration):
        if isinstance(invitation, JoinRequest):
            InvitationBroker._discard_pending(registration, invitation.requester_id)
            registration.save(update_fields=["pending_requests"])

        invitation_pk = invitation.pk
        invitation.delete()

        transaction.on_commit(lambda: invitation_responded.send(
            sender=Invitation, invitation=invitation, decision=DECISION_REJECT,
        ))
        logger.info(
            "Invitation rejected: invitation=%s, kind=%s, registration=%s",
            invitation_pk, invitation.kind, registration.pk,
        )

    @staticmethod
    def _accept(invitation, registration):
        event = Event.objects.get(pk=invitation.event_id)
        user_id, name, roll_no = invitation.resolve_member()
        roll_no = (roll_no or "").strip()
        if not roll_no:
            raise ProfileIncomplete("The joining student has no roll number on their profile.")

        # Checked before anything is written: a full team stays untouched
        size = registration.team_size
        limit = event.team_size_limit
        if size + 1 > limit:
            raise TeamFull(f"This team already has {size} of {limit} members.")

        if RegistrationParticipant.objects.filter(event=event, user_id=user_id).exists():
            raise DuplicateParticipant("This student is already part of a team for this event.")
        if RegistrationParticipant.objects.filter(event=event, roll_no_key=roll_no_key(roll_no)).exists():
            raise DuplicateParticipant(f"Participant {roll_no} is already registered for this event.")

        try:
            with transaction.atomic():
                RegistrationParticipant.objects.create(
                    registration=registration,
                    event=event,
                    user_id=user_id,
                    name=sanitize_member_name(name) or roll_no,
                    roll_no=roll_no,
                    role=RegistrationParticipant.ROLE_MEMBER,
                )
        except IntegrityError:
            raise DuplicateParticipant("This student is already part of a team for this event.")

        update_fields = []
        if isinstance(invitation, JoinRequest):
            InvitationBroker._discard_pending(registration, invitation.requester_id)
            update_fields.append("pending_requests")
        if size + 1 >= (event.min_team_size or 1) and advance(registration, Registration.STATUS_REGISTERED):
            update_fields.append("status")
        if update_fields:
            registration.save(update_fields=update_fields)

        invitation.status = Invitation.STATUS_ACCEPTED
        invitation.responded_at = timezone.now()
        invitation.save(update_fields=["status", "responded_at"])

        transaction.on_commit(lambda: invitation_responded.send(
            sender=Invitation, invitation=invitation, decision=DECISION_ACCEPT,
        ))
        logger.info(
            "Invitation accepted: invitation=%s, kind=%s, registration=%s, member=%s, team_size=%s",
            invitation.pk, invitation.kind, registration.pk, user_id, size + 1,
        )
        return invitation

    @staticmethod
    def _discard_pending(registration, user_id):
        registration.pending_requests = [uid for uid in registration.pending_requests if uid != user_id]
