# notifications/models.py
"""
In-app inbox entries about team formation.

A student hears about invites and join requests addressed to them, and
about the answers to the ones they sent. Entries outlive the invitation
they describe: a rejected invitation is deleted, its notification stays.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone


class NotificationQuerySet(models.QuerySet):
    def unread(self):
        return self.filter(read_at__isnull=True)

    def mark_read(self, ids=None):
        """Stamp unread entries (all, or only ids) as read. Returns the count."""
        qs = self.unread()
        if ids is not None:
            qs = qs.filter(pk__in=ids)
        return qs.update(read_at=timezone.now())


class Notification(models.Model):
    KIND_TEAM_INVITE = "team_invite"
    KIND_JOIN_REQUEST = "join_request"
    KIND_INVITATION_ACCEPTED = "invitation_accepted"
    KIND_INVITATION_REJECTED = "invitation_rejected"

    KIND_CHOICES = [
        (KIND_TEAM_INVITE, "Invited to a team"),
        (KIND_JOIN_REQUEST, "Asked to join your team"),
        (KIND_INVITATION_ACCEPTED, "Answer: accepted"),
        (KIND_INVITATION_REJECTED, "Answer: declined"),
    ]

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    kind = models.CharField(max_length=32, choices=KIND_CHOICES)
    event = models.ForeignKey(
        "events.Event",
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    invitation = models.ForeignKey(
        "events.Invitation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    team_name = models.CharField(max_length=100)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-pk"]
        indexes = [
            models.Index(fields=["recipient", "read_at"], name="notif_recipient_read_idx"),
            models.Index(fields=["event", "kind"], name="notif_event_kind_idx"),
        ]

    def __str__(self):
        return f"{self.kind} for {self.recipient_id}: {self.title}"

    @property
    def is_read(self):
        return self.read_at is not None
