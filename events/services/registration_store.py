# events/services/registration_store.py
"""
RegistrationStore: creation and lookup of Registration records.

Registration for an event is serialized on the event row, so the
team-name and roll-number checks below read a roster nobody else is
changing. The unique constraints on Registration and
RegistrationParticipant back those checks up; a constraint hit is
reported as the same error the check would have raised.
"""
import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from core.db import atomic_with_retry
from events.dataclasses import ProfileSnapshot, TeamDetails, TeamMemberInput
from events.exceptions import (
    AlreadyRegistered,
    DuplicateParticipant,
    DuplicateTeamName,
    EventNotFound,
    InvalidTeamDetails,
    ProfileIncomplete,
    RegistrationClosed,
    RegistrationNotFound,
    TeamFull,
    UserNotFound,
)
from events.models import Event, Registration, RegistrationParticipant
from events.sanitizers import (
    roll_no_key,
    sanitize_member_name,
    sanitize_single_line,
    sanitize_team_name,
    team_name_key,
)
from events.state_machine import roster_status

logger = logging.getLogger("participation.events")

User = get_user_model()


class RegistrationStore:

    @staticmethod
    @atomic_with_retry
    def register(event_id, user_id, profile: ProfileSnapshot, team_details: Optional[TeamDetails] = None) -> int:
        """
        Register user_id for the event, alone or as a team leader.

        Checks, in order: event exists, registration window open, profile
        complete, not already a leader here, then (for teams) team name and
        roll numbers free. Returns the new registration id.
        """
        try:
            # Lock the event row: one registration at a time per event
            event = Event.objects.select_for_update().get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound()

        if not event.is_registration_open():
            logger.warning("Registration refused: event %s is closed (user=%s)", event_id, user_id)
            raise RegistrationClosed()

        if not profile.is_complete:
            raise ProfileIncomplete()

        if Registration.objects.filter(event=event, user_id=user_id).exists():
            raise AlreadyRegistered()

        team_name = ""
        members = []
        if team_details is not None:
            team_name, members = RegistrationStore._clean_team(event, team_details)

        RegistrationStore._ensure_seats_free(event, user_id, profile.roll_no, members)

        if team_details is not None:
            status = roster_status(1 + len(members), event.min_team_size)
        else:
            status = Registration.STATUS_REGISTERED

        try:
            with transaction.atomic():
                registration = Registration.objects.create(
                    event=event,
                    user_id=user_id,
                    snapshot_name=sanitize_member_name(profile.display_name) or "Unknown",
                    snapshot_roll_no=profile.roll_no.strip(),
                    snapshot_class=sanitize_single_line(profile.student_class, 32) or "Unknown",
                    snapshot_section=sanitize_single_line(profile.section, 8) or "Unknown",
                    snapshot_mobile=profile.mobile.strip(),
                    status=status,
                    team_name=team_name,
                )
                RegistrationParticipant.objects.create(
                    registration=registration,
                    event=event,
                    user_id=user_id,
                    name=registration.snapshot_name,
                    roll_no=registration.snapshot_roll_no,
                    role=RegistrationParticipant.ROLE_LEADER,
                )
                for member in members:
                    RegistrationParticipant.objects.create(
                        registration=registration,
                        event=event,
                        user_id=member.user_id,
                        name=member.name,
                        roll_no=member.roll_no,
                        role=RegistrationParticipant.ROLE_MEMBER,
                    )
        except IntegrityError:
            raise RegistrationStore._conflict_after_integrity_error(event, user_id, team_name)

        logger.info(
            "Registration created: registration=%s, event=%s, user=%s, team=%r, status=%s",
            registration.pk, event.pk, user_id, team_name or None, status,
        )
        return registration.pk

    @staticmethod
    def _clean_team(event, team_details: TeamDetails):
        team_name = sanitize_team_name(team_details.team_name)
        if not team_name:
            raise InvalidTeamDetails("Team name is required.")

        account_ids = {m.user_id for m in team_details.members if m.user_id is not None}
        accounts = User.objects.in_bulk(account_ids) if account_ids else {}

        members = []
        for member in team_details.members:
            roll_no = (member.roll_no or "").strip()
            name = member.name
            if member.user_id is not None:
                account = accounts.get(member.user_id)
                if account is None:
                    raise UserNotFound(f"Team member account {member.user_id} does not exist.")
                roll_no = RegistrationStore._account_roll_no(account, roll_no)
                name = name or account.name
            if not roll_no:
                raise InvalidTeamDetails("Every team member needs a roll number.")
            members.append(TeamMemberInput(
                name=sanitize_member_name(name) or roll_no,
                roll_no=roll_no,
                user_id=member.user_id,
            ))

        limit = event.team_size_limit
        if 1 + len(members) > limit:
            raise TeamFull(f"Teams for this event can have at most {limit} members.")

        if Registration.objects.filter(event=event, team_name_key=team_name_key(team_name)).exists():
            raise DuplicateTeamName(f'Team name "{team_name}" is already taken for this event.')

        return team_name, members

    @staticmethod
    def _account_roll_no(account, listed_roll_no):
        """
        A member seated with an account takes the roll number on its
        profile. A listed roll number must name the same student.
        """
        profile_roll_no = (account.roll_no or "").strip()
        if not profile_roll_no:
            raise ProfileIncomplete(f"Team member {account.pk} has no roll number on their profile.")
        if listed_roll_no and roll_no_key(listed_roll_no) != roll_no_key(profile_roll_no):
            raise InvalidTeamDetails(
                f"Roll number {listed_roll_no} does not match the profile of team member {account.pk}."
            )
        return profile_roll_no

    @staticmethod
    def _ensure_seats_free(event, leader_id, leader_roll_no, members):
        """
        No roll number (and no account) of the incoming roster may already
        hold a seat in this event, or appear twice in the roster itself.
        """
        rolls = [leader_roll_no] + [m.roll_no for m in members]
        keys = [roll_no_key(r) for r in rolls]
        seen = set()
        for roll, key in zip(rolls, keys):
            if key in seen:
                raise DuplicateParticipant(f"Participant {roll} is listed more than once.")
            seen.add(key)

        taken = (
            RegistrationParticipant.objects
            .filter(event=event, roll_no_key__in=keys)
            .select_related("registration")
            .first()
        )
        if taken:
            if taken.registration.team_name:
                raise DuplicateParticipant(
                    f"Participant {taken.roll_no} is already registered in team '{taken.registration.team_name}'."
                )
            raise DuplicateParticipant(f"Participant {taken.roll_no} is already registered.")

        user_ids = [leader_id] + [m.user_id for m in members if m.user_id is not None]
        if len(set(user_ids)) != len(user_ids):
            raise DuplicateParticipant("A participant is listed more than once.")
        if RegistrationParticipant.objects.filter(event=event, user_id__in=user_ids).exists():
            raise DuplicateParticipant("A participant of this team is already part of another team for this event.")

    @staticmethod
    def _conflict_after_integrity_error(event, user_id, team_name):
        """Name the constraint a concurrent writer beat us to."""
        if Registration.objects.filter(event=event, user_id=user_id).exists():
            return AlreadyRegistered()
        if team_name and Registration.objects.filter(event=event, team_name_key=team_name_key(team_name)).exists():
            return DuplicateTeamName(f'Team name "{team_name}" is already taken for this event.')
        return DuplicateParticipant()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def find_for_participant(event_id, user_id) -> Optional[Registration]:
        """
        The registration user_id takes part in: as leader first, then as
        a team member. The participant constraints guarantee at most one.
        """
        registration = Registration.objects.filter(event_id=event_id, user_id=user_id).first()
        if registration is not None:
            return registration

        seat = (
            RegistrationParticipant.objects
            .filter(event_id=event_id, user_id=user_id)
            .select_related("registration")
            .first()
        )
        return seat.registration if seat else None

    @staticmethod
    def lock(registration_id) -> Registration:
        """Re-read a registration with a row lock. Call inside a transaction."""
        try:
            return Registration.objects.select_for_update().get(pk=registration_id)
        except Registration.DoesNotExist:
            raise RegistrationNotFound()

    @staticmethod
    def list_for_event(event_id):
        if not Event.objects.filter(pk=event_id).exists():
            raise EventNotFound()
        return list(
            Registration.objects
            .filter(event_id=event_id)
            .select_related("user")
            .prefetch_related("participants")
            .order_by("registered_at", "pk")
        )
