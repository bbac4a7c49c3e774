from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from events.dataclasses import ProfileSnapshot, TeamDetails
from events.exceptions import AlreadyRegistered
from events.models import Event
from events.services import RegistrationStore

User = get_user_model()

STUDENTS = [
    ("alice", "Alice Menon", "CB.EN.U4AIE21001", "AIE", "A", "9000000001"),
    ("bob", "Bob Varghese", "CB.EN.U4AIE21002", "AIE", "A", "9000000002"),
    ("carol", "Carol Iyer", "CB.EN.U4CSE21003", "CSE", "B", "9000000003"),
    ("dev", "Dev Nair", "CB.EN.U4CSE21004", "CSE", "B", "9000000004"),
]


class Command(BaseCommand):
    help = "Seeds the database with sample students, events and a forming team"

    def handle(self, *args, **options):
        self.stdout.write("Seeding data...")

        # 1. Ensure Users
        admin, _ = User.objects.get_or_create(username="admin", defaults={"email": "admin@example.com", "role": "admin"})
        if not admin.check_password("admin"):
            admin.set_password("admin")
            admin.save()

        students = {}
        for username, name, roll_no, student_class, section, mobile in STUDENTS:
            user, _ = User.objects.get_or_create(
                username=username,
                defaults={
                    "email": f"{username}@example.com",
                    "role": "student",
                    "display_name": name,
                    "roll_no": roll_no,
                    "student_class": student_class,
                    "section": section,
                    "mobile": mobile,
                    "is_verified": True,
                },
            )
            user.set_password("password")
            user.save()
            students[username] = user

        # 2. Create Events
        now = timezone.now()
        hackathon, _ = Event.objects.get_or_create(
            title="Hackathon: Build for Good",
            defaults={
                "date": now + timezone.timedelta(days=12),
                "registration_status": Event.REGISTRATION_OPEN,
                "min_team_size": 3,
                "max_team_size": 4,
            },
        )
        Event.objects.get_or_create(
            title="Tech Mixer Night",
            defaults={
                "date": now + timezone.timedelta(days=2),
                "registration_status": Event.REGISTRATION_OPEN,
                "attendance_code": "4821",
            },
        )
        Event.objects.get_or_create(
            title="AI Revolution Summit",
            defaults={
                "date": now - timezone.timedelta(days=3),
                "registration_status": Event.REGISTRATION_CLOSED,
                "is_feedback_open": True,
            },
        )

        # 3. A team still forming, so invites and join requests have a target
        alice = students["alice"]
        try:
            RegistrationStore.register(
                hackathon.pk,
                alice.pk,
                ProfileSnapshot.from_user(alice),
                TeamDetails(team_name="Falcons"),
            )
        except AlreadyRegistered:
            pass

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(students)} students and {Event.objects.count()} events."
        ))
