# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_CHOICES = (
        ('student', 'Student'),
        ('organizer', 'Organizer'),
        ('admin', 'Admin'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default='student'
    )

    # Student profile. Registrations copy these at registration time,
    # later edits here never reach existing registrations.
    display_name = models.CharField(max_length=150, blank=True)
    roll_no = models.CharField(max_length=32, blank=True, db_index=True)
    student_class = models.CharField(max_length=32, blank=True, help_text="e.g. AIE, CSE")
    section = models.CharField(max_length=8, blank=True)
    mobile = models.CharField(max_length=20, blank=True)

    is_verified = models.BooleanField(default=False)

    @property
    def name(self):
        return self.display_name or self.get_full_name() or self.username

    @property
    def is_organizer(self):
        return self.is_staff or self.is_superuser or self.role in ('organizer', 'admin')

    def __str__(self):
        return self.username
