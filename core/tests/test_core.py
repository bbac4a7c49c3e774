from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import OperationalError
from django.test import SimpleTestCase, TestCase, TransactionTestCase
from rest_framework.exceptions import NotFound
from rest_framework.test import APIClient

from core.db import TransientStoreFailure, atomic_with_retry
from core.exceptions import custom_exception_handler
from events.exceptions import TeamFull
from events.models import Event, Registration


class HealthCheckTests(TestCase):
    def test_health(self):
        resp = APIClient().get("/api/health/")
        self.assertEqual(resp.status_code, 200)


class ExceptionHandlerTests(SimpleTestCase):
    def test_typed_error_carries_code(self):
        resp = custom_exception_handler(TeamFull("Team is full."), {})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data, {
            "success": False,
            "status_code": 409,
            "errors": {"detail": "Team is full.", "code": "team_full"},
        })

    def test_not_found(self):
        resp = custom_exception_handler(NotFound(), {})
        self.assertEqual(resp.data["errors"]["code"], "not_found")

    def test_unhandled_is_internal_failure(self):
        with self.assertLogs("participation.core", level="ERROR"):
            resp = custom_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.data["errors"]["code"], "internal_failure")


class AtomicWithRetryTests(TransactionTestCase):
    def test_retries_then_gives_up(self):
        calls = mock.Mock(side_effect=OperationalError("database is locked"))

        @atomic_with_retry(attempts=3)
        def flaky():
            return calls()

        with self.assertLogs("participation.core", level="WARNING"):
            with self.assertRaises(TransientStoreFailure):
                flaky()
        self.assertEqual(calls.call_count, 3)

    def test_succeeds_after_conflict(self):
        calls = mock.Mock(side_effect=[OperationalError("deadlock detected"), "ok"])

        @atomic_with_retry
        def flaky():
            return calls()

        with self.assertLogs("participation.core", level="WARNING"):
            self.assertEqual(flaky(), "ok")

    def test_business_errors_are_not_retried(self):
        calls = mock.Mock(side_effect=TeamFull())

        @atomic_with_retry
        def full():
            return calls()

        with self.assertRaises(TeamFull):
            full()
        self.assertEqual(calls.call_count, 1)


class SeedDataTests(TestCase):
    def test_seed_is_repeatable(self):
        call_command("seed_data", stdout=StringIO())
        call_command("seed_data", stdout=StringIO())

        self.assertEqual(Event.objects.count(), 3)
        team = Registration.objects.get(team_name="Falcons")
        self.assertEqual(team.status, Registration.STATUS_FORMING)
