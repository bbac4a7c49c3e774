import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("date", models.DateTimeField()),
                ("min_team_size", models.PositiveIntegerField(default=1)),
                (
                    "max_team_size",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Leader included. Empty falls back to PARTICIPATION_DEFAULT_MAX_TEAM_SIZE.",
                        null=True,
                    ),
                ),
                (
                    "registration_status",
                    models.CharField(
                        choices=[("upcoming", "Upcoming"), ("open", "Open"), ("closed", "Closed")],
                        default="upcoming",
                        max_length=16,
                    ),
                ),
                ("attendance_code", models.CharField(blank=True, default="", max_length=32)),
                ("is_feedback_open", models.BooleanField(default=False)),
                ("avg_rating", models.FloatField(default=0)),
                ("feedback_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["date"], name="event_date_idx"),
                    models.Index(fields=["registration_status"], name="event_reg_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("snapshot_name", models.CharField(max_length=150)),
                ("snapshot_roll_no", models.CharField(max_length=32)),
                ("snapshot_class", models.CharField(max_length=32)),
                ("snapshot_section", models.CharField(max_length=8)),
                ("snapshot_mobile", models.CharField(max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[("forming", "Forming"), ("registered", "Registered"), ("attended", "Attended")],
                        default="registered",
                        max_length=16,
                    ),
                ),
                ("team_name", models.CharField(blank=True, default="", max_length=100)),
                ("team_name_key", models.CharField(blank=True, default="", editable=False, max_length=100)),
                ("pending_requests", models.JSONField(blank=True, default=list)),
                ("attendance", models.JSONField(blank=True, default=dict)),
                ("feedback_submitted", models.BooleanField(default=False)),
                ("feedback_map", models.JSONField(blank=True, default=dict)),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="led_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "registered_at"], name="reg_event_registered_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "user"), name="uniq_registration_event_leader"),
                    models.UniqueConstraint(
                        condition=models.Q(("team_name_key", ""), _negated=True),
                        fields=("event", "team_name_key"),
                        name="uniq_registration_event_team_name",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RegistrationParticipant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("roll_no", models.CharField(max_length=32)),
                ("roll_no_key", models.CharField(editable=False, max_length=32)),
                (
                    "role",
                    models.CharField(
                        choices=[("leader", "Team Leader"), ("member", "Member")],
                        default="member",
                        max_length=20,
                    ),
                ),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="events.event",
                    ),
                ),
                (
                    "registration",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="events.registration",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Empty for members listed by the leader without an account",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_participations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["registration", "joined_at"], name="participant_reg_joined_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "roll_no_key"), name="uniq_participant_event_roll"),
                    models.UniqueConstraint(
                        condition=models.Q(("user__isnull", False)),
                        fields=("event", "user"),
                        name="uniq_participant_event_user",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invitation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(choices=[("invite", "Invite"), ("request", "Join request")], max_length=16),
                ),
                ("event_title", models.CharField(max_length=255)),
                ("team_name", models.CharField(max_length=100)),
                ("sender_name", models.CharField(max_length=150)),
                ("target_name", models.CharField(max_length=150)),
                ("target_roll_no", models.CharField(blank=True, default="", max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("accepted", "Accepted")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invitations",
                        to="events.event",
                    ),
                ),
                (
                    "registration",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invitations",
                        to="events.registration",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_invitations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "target",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_invitations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["target", "status"], name="invitation_target_status_idx"),
                    models.Index(fields=["registration", "created_at"], name="invitation_reg_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("kind", "invite")),
                        fields=("event", "target"),
                        name="uniq_invite_event_target",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("kind", "request")),
                        fields=("event", "sender", "registration"),
                        name="uniq_request_event_requester_team",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Feedback",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("overall_rating", models.PositiveSmallIntegerField()),
                ("matrix_ratings", models.JSONField(blank=True, default=dict)),
                ("opinion", models.TextField(blank=True)),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="feedbacks",
                        to="events.event",
                    ),
                ),
                (
                    "registration",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="feedbacks",
                        to="events.registration",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_feedbacks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-submitted_at"],
                "indexes": [
                    models.Index(fields=["event", "submitted_at"], name="feedback_event_submitted_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "user"), name="uniq_feedback_event_user"),
                    models.CheckConstraint(
                        condition=models.Q(("overall_rating__gte", 1), ("overall_rating__lte", 5)),
                        name="feedback_overall_rating_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamInvite",
            fields=[],
            options={
                "proxy": True,
                "indexes": [],
                "constraints": [],
            },
            bases=("events.invitation",),
        ),
        migrations.CreateModel(
            name="JoinRequest",
            fields=[],
            options={
                "proxy": True,
                "indexes": [],
                "constraints": [],
            },
            bases=("events.invitation",),
        ),
    ]
