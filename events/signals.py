# events/signals.py
"""
Team-formation signals for out-of-core collaborators.

Sent by InvitationBroker after the surrounding transaction commits, so
receivers only ever see state that is durable.

- invitation_created(invitation)
- invitation_responded(invitation, decision)   decision: "accept" | "reject"
  On "reject" the row is already deleted; the instance still carries the
  envelope fields.
"""
import django.dispatch

invitation_created = django.dispatch.Signal()
invitation_responded = django.dispatch.Signal()
