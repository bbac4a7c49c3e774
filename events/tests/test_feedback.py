from django.test import TestCase

from events.exceptions import (
    EventNotFound,
    FeedbackAlreadySubmitted,
    FeedbackNotOpen,
    InvalidRating,
    NotRegistered,
)
from events.models import Event, Feedback, Registration
from events.services import FeedbackAggregator

from .helpers import make_event, make_student, register


class FeedbackTests(TestCase):
    def setUp(self):
        self.event = make_event(is_feedback_open=True)
        self.student = make_student("student")
        self.reg_id = register(self.event, self.student)

    def test_rolling_average(self):
        Event.objects.filter(pk=self.event.pk).update(avg_rating=4.0, feedback_count=1)

        FeedbackAggregator.submit(self.event.pk, self.student.pk, 2)

        self.event.refresh_from_db()
        self.assertAlmostEqual(self.event.avg_rating, 3.0)
        self.assertEqual(self.event.feedback_count, 2)

    def test_average_is_mean_of_all_ratings(self):
        ratings = [5, 3, 4, 1]
        for i, rating in enumerate(ratings):
            student = make_student(f"s{i}")
            register(self.event, student)
            FeedbackAggregator.submit(self.event.pk, student.pk, rating)

        self.event.refresh_from_db()
        self.assertAlmostEqual(self.event.avg_rating, sum(ratings) / len(ratings))
        self.assertEqual(self.event.feedback_count, len(ratings))

    def test_marks_registration(self):
        feedback = FeedbackAggregator.submit(
            self.event.pk,
            self.student.pk,
            4,
            matrix_ratings={"content": 5, "organization": 3},
            opinion="<script>x</script>Great talks",
        )

        reg = Registration.objects.get(pk=self.reg_id)
        self.assertTrue(reg.feedback_submitted)
        self.assertEqual(reg.feedback_map, {str(self.student.pk): True})
        self.assertTrue(reg.has_feedback(self.student.pk))
        self.assertEqual(feedback.registration_id, self.reg_id)
        self.assertNotIn("<script>", feedback.opinion)

    def test_only_once(self):
        FeedbackAggregator.submit(self.event.pk, self.student.pk, 4)
        with self.assertRaises(FeedbackAlreadySubmitted):
            FeedbackAggregator.submit(self.event.pk, self.student.pk, 5)

        self.event.refresh_from_db()
        self.assertEqual(self.event.feedback_count, 1)

    def test_legacy_flag_counts_for_individuals(self):
        Registration.objects.filter(pk=self.reg_id).update(feedback_submitted=True)
        with self.assertRaises(FeedbackAlreadySubmitted):
            FeedbackAggregator.submit(self.event.pk, self.student.pk, 4)

    def test_feedback_closed(self):
        Event.objects.filter(pk=self.event.pk).update(is_feedback_open=False)
        with self.assertRaises(FeedbackNotOpen):
            FeedbackAggregator.submit(self.event.pk, self.student.pk, 4)

    def test_non_participant(self):
        with self.assertRaises(NotRegistered):
            FeedbackAggregator.submit(self.event.pk, make_student("outsider").pk, 4)

    def test_unknown_event(self):
        with self.assertRaises(EventNotFound):
            FeedbackAggregator.submit(9999, self.student.pk, 4)

    def test_invalid_ratings(self):
        for bad in (0, 6, True, 3.5, "4"):
            with self.assertRaises(InvalidRating):
                FeedbackAggregator.submit(self.event.pk, self.student.pk, bad)
        with self.assertRaises(InvalidRating):
            FeedbackAggregator.submit(self.event.pk, self.student.pk, 4, matrix_ratings={"vibes": 4})
        with self.assertRaises(InvalidRating):
            FeedbackAggregator.submit(self.event.pk, self.student.pk, 4, matrix_ratings={"content": 9})
        self.assertFalse(Feedback.objects.exists())
