from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from events.dataclasses import ProfileSnapshot, TeamDetails, TeamMemberInput
from events.models import Event
from events.services import RegistrationStore

User = get_user_model()


def make_student(username, roll_no=None, mobile="9000000000", verified=True, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pass1234",
        role=extra.pop("role", "student"),
        display_name=extra.pop("display_name", username.title()),
        roll_no=roll_no if roll_no is not None else f"CB.EN.U4AIE21{username.upper()}",
        student_class=extra.pop("student_class", "AIE"),
        section=extra.pop("section", "A"),
        mobile=mobile,
        is_verified=verified,
        **extra,
    )


def make_event(title="Hackathon", **fields):
    defaults = {
        "date": timezone.now() + timedelta(days=7),
        "registration_status": Event.REGISTRATION_OPEN,
    }
    defaults.update(fields)
    return Event.objects.create(title=title, **defaults)


def register(event, user, team_name=None, members=()):
    team = None
    if team_name is not None:
        team = TeamDetails(
            team_name=team_name,
            members=[TeamMemberInput(name=name, roll_no=roll_no) for name, roll_no in members],
        )
    return RegistrationStore.register(event.pk, user.pk, ProfileSnapshot.from_user(user), team)
