# events/state_machine.py
"""
Registration status state machine.

Status only ever moves forward:
forming → registered → attended
        └────────────→ attended (individual check-in)

Any transition not in VALID_TRANSITIONS is refused; asking for the current
status again is a no-op.
"""
from typing import Tuple
import logging

from .models import Registration

logger = logging.getLogger('participation.events')


VALID_TRANSITIONS = {
    Registration.STATUS_FORMING: [Registration.STATUS_REGISTERED, Registration.STATUS_ATTENDED],
    Registration.STATUS_REGISTERED: [Registration.STATUS_ATTENDED],
    Registration.STATUS_ATTENDED: [],
}


def can_transition(registration: Registration, new_status: str) -> Tuple[bool, str]:
    """
    Check if a registration can move to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = registration.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Registration.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def advance(registration: Registration, new_status: str) -> bool:
    """
    Move the registration forward if allowed. Does not save.

    Returns True when the status changed. A backward request is logged
    and ignored, never applied.
    """
    can, reason = can_transition(registration, new_status)
    if not can:
        logger.warning(
            "Refused registration transition: registration=%s, from=%s, to=%s. %s",
            registration.pk, registration.status, new_status, reason,
        )
        return False

    if new_status == registration.status:
        return False

    old_status = registration.status
    registration.status = new_status
    logger.info(
        "Registration transition: registration=%s, from=%s, to=%s",
        registration.pk, old_status, new_status,
    )
    return True


def roster_status(team_size: int, min_team_size: int) -> str:
    """Status a team of this size should be in (leader included)."""
    if team_size < (min_team_size or 1):
        return Registration.STATUS_FORMING
    return Registration.STATUS_REGISTERED
