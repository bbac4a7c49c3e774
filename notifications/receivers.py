# notifications/receivers.py
"""
In-app notifications for team formation.

New invitations notify their target; responses notify the sender. Both
signals fire after commit, so a failure here never undoes the change
being announced: it is logged and dropped.
"""
import logging

from django.dispatch import receiver

from events.models import Invitation
from events.signals import invitation_created, invitation_responded
from .models import Notification

logger = logging.getLogger("participation.notifications")


def _notify(recipient_id, kind, invitation, title, message):
    # A rejected invitation is already deleted and has no pk to link
    try:
        Notification.objects.create(
            recipient_id=recipient_id,
            kind=kind,
            event_id=invitation.event_id,
            invitation_id=invitation.pk,
            team_name=invitation.team_name,
            title=title,
            message=message,
        )
    except Exception as e:
        logger.warning("Failed to store %s notification for user %s: %s", kind, recipient_id, e)


@receiver(invitation_created, dispatch_uid="notifications.notify_invitation_created")
def notify_invitation_created(sender, invitation, **kwargs):
    if invitation.kind == Invitation.KIND_INVITE:
        _notify(
            invitation.target_id,
            Notification.KIND_TEAM_INVITE,
            invitation,
            f"Team invite: {invitation.team_name}",
            f"{invitation.sender_name} invited you to join {invitation.team_name} for {invitation.event_title}.",
        )
    else:
        _notify(
            invitation.target_id,
            Notification.KIND_JOIN_REQUEST,
            invitation,
            f"Join request for {invitation.team_name}",
            f"{invitation.sender_name} asked to join {invitation.team_name} for {invitation.event_title}.",
        )


@receiver(invitation_responded, dispatch_uid="notifications.notify_invitation_responded")
def notify_invitation_responded(sender, invitation, decision, **kwargs):
    what = "invite to" if invitation.kind == Invitation.KIND_INVITE else "request to join"
    if decision == "accept":
        kind, verb = Notification.KIND_INVITATION_ACCEPTED, "accepted"
    else:
        kind, verb = Notification.KIND_INVITATION_REJECTED, "declined"

    _notify(
        invitation.sender_id,
        kind,
        invitation,
        f"{invitation.team_name}: {verb}",
        f"{invitation.target_name} {verb} your {what} {invitation.team_name} for {invitation.event_title}.",
    )
