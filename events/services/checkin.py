# events/services/checkin.py
import logging

from core.db import atomic_with_retry
from events.exceptions import (
    AlreadyCheckedIn,
    AttendanceNotActive,
    EventNotFound,
    IncorrectCode,
    NotRegistered,
)
from events.models import Event, Registration
from events.services.registration_store import RegistrationStore
from events.state_machine import advance

logger = logging.getLogger("participation.events")


class CheckInValidator:
    """
    Marks a participant present with the event's attendance code.

    Attendance is per participant: a team member checking in does not
    check in the rest of the team.
    """

    @staticmethod
    @atomic_with_retry
    def check_in(event_id, user_id, submitted_code) -> Registration:
        try:
            event = Event.objects.get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound()

        if not event.is_attendance_active:
            raise AttendanceNotActive()

        if submitted_code != event.attendance_code:
            logger.warning("Incorrect attendance code: event=%s, user=%s", event.pk, user_id)
            raise IncorrectCode()

        found = RegistrationStore.find_for_participant(event.pk, user_id)
        if found is None:
            raise NotRegistered()

        registration = RegistrationStore.lock(found.pk)
        if registration.is_attended(user_id):
            raise AlreadyCheckedIn()

        registration.attendance = {**registration.attendance, str(user_id): True}
        update_fields = ["attendance"]
        # Individuals also carry it in status, which older readers look at
        if not registration.is_team and advance(registration, Registration.STATUS_ATTENDED):
            update_fields.append("status")
        registration.save(update_fields=update_fields)

        logger.info(
            "Checked in: event=%s, user=%s, registration=%s",
            event.pk, user_id, registration.pk,
        )
        return registration
