import threading

import pytest
from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature

from events.exceptions import AlreadyCheckedIn, ParticipationError, TeamFull
from events.models import Event, Registration
from events.services import CheckInValidator, FeedbackAggregator, InvitationBroker

from .helpers import make_event, make_student, register

# Needs row locks: run with DATABASE_URL pointing at PostgreSQL (README.md)
pytestmark = pytest.mark.concurrency


def run_concurrently(*calls):
    """Start every call at the same time; return (results, errors)."""
    barrier = threading.Barrier(len(calls))
    results, errors = [], []
    lock = threading.Lock()

    def worker(fn):
        try:
            barrier.wait()
            value = fn()
            with lock:
                results.append(value)
        except ParticipationError as e:
            with lock:
                errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(fn,)) for fn in calls]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentAcceptTests(TransactionTestCase):
    def test_last_seat_goes_to_exactly_one_student(self):
        event = make_event(min_team_size=2, max_team_size=2)
        leader = make_student("leader")
        reg_id = register(event, leader, team_name="Falcons")
        invites = []
        for name in ("m1", "m2", "m3"):
            student = make_student(name)
            invites.append(InvitationBroker.invite(
                event.pk, reg_id, leader.pk, leader.name, student.pk, student.name, student.roll_no,
            ))

        results, errors = run_concurrently(
            *[lambda pk=invite.pk: InvitationBroker.respond(pk, "accept") for invite in invites]
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 2)
        self.assertTrue(all(isinstance(e, TeamFull) for e in errors))
        self.assertEqual(Registration.objects.get(pk=reg_id).team_size, 2)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentFeedbackTests(TransactionTestCase):
    def test_average_has_no_lost_updates(self):
        event = make_event(is_feedback_open=True)
        ratings = [5, 4, 3, 2, 1, 5, 4, 3]
        students = []
        for i in range(len(ratings)):
            student = make_student(f"s{i}")
            register(event, student)
            students.append(student)

        results, errors = run_concurrently(*[
            lambda s=student, r=rating: FeedbackAggregator.submit(event.pk, s.pk, r)
            for student, rating in zip(students, ratings)
        ])

        self.assertEqual(errors, [])
        event = Event.objects.get(pk=event.pk)
        self.assertEqual(event.feedback_count, len(ratings))
        self.assertAlmostEqual(event.avg_rating, sum(ratings) / len(ratings))


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentCheckInTests(TransactionTestCase):
    def test_double_submit_checks_in_once(self):
        event = make_event(attendance_code="4821")
        student = make_student("student")
        register(event, student)

        results, errors = run_concurrently(
            lambda: CheckInValidator.check_in(event.pk, student.pk, "4821"),
            lambda: CheckInValidator.check_in(event.pk, student.pk, "4821"),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], AlreadyCheckedIn)
