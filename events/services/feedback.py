# events/services/feedback.py
import logging

from django.db import IntegrityError, transaction

from core.db import atomic_with_retry
from events.exceptions import (
    EventNotFound,
    FeedbackAlreadySubmitted,
    FeedbackNotOpen,
    InvalidRating,
    NotRegistered,
)
from events.models import Event, Feedback
from events.sanitizers import sanitize_opinion
from events.services.registration_store import RegistrationStore

logger = logging.getLogger("participation.events")


def _is_rating(value):
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 5


class FeedbackAggregator:

    @staticmethod
    def validate_ratings(overall_rating, matrix_ratings):
        if not _is_rating(overall_rating):
            raise InvalidRating()
        for criterion, value in (matrix_ratings or {}).items():
            if criterion not in Feedback.MATRIX_CRITERIA:
                raise InvalidRating(f"Unknown rating criterion: {criterion}.")
            if not _is_rating(value):
                raise InvalidRating(f"Rating for {criterion} must be a whole number between 1 and 5.")

    @staticmethod
    def submit(event_id, user_id, overall_rating, matrix_ratings=None, opinion=""):
        """
        Store a participant's feedback and fold its rating into the event.

        The event row is locked for the whole submission, so concurrent
        submissions update avg_rating and feedback_count one at a time:
            new_avg = (avg * count + rating) / (count + 1)
        """
        FeedbackAggregator.validate_ratings(overall_rating, matrix_ratings)
        return FeedbackAggregator._submit(event_id, user_id, overall_rating, dict(matrix_ratings or {}), opinion)

    @staticmethod
    @atomic_with_retry
    def _submit(event_id, user_id, overall_rating, matrix_ratings, opinion):
        try:
            event = Event.objects.select_for_update().get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound()

        if not event.is_feedback_open:
            raise FeedbackNotOpen()

        found = RegistrationStore.find_for_participant(event.pk, user_id)
        if found is None:
            raise NotRegistered("Only participants can give feedback for this event.")
        registration = RegistrationStore.lock(found.pk)

        if registration.has_feedback(user_id) or Feedback.objects.filter(event=event, user_id=user_id).exists():
            raise FeedbackAlreadySubmitted()

        try:
            with transaction.atomic():
                feedback = Feedback.objects.create(
                    event=event,
                    user_id=user_id,
                    registration=registration,
                    overall_rating=overall_rating,
                    matrix_ratings=matrix_ratings,
                    opinion=sanitize_opinion(opinion),
                )
        except IntegrityError:
            raise FeedbackAlreadySubmitted()

        count = event.feedback_count
        event.avg_rating = (event.avg_rating * count + overall_rating) / (count + 1)
        event.feedback_count = count + 1
        event.save(update_fields=["avg_rating", "feedback_count"])

        registration.feedback_submitted = True
        registration.feedback_map = {**registration.feedback_map, str(user_id): True}
        registration.save(update_fields=["feedback_submitted", "feedback_map"])

        logger.info(
            "Feedback submitted: event=%s, user=%s, rating=%s, avg=%.2f, count=%s",
            event.pk, user_id, overall_rating, event.avg_rating, event.feedback_count,
        )
        return feedback
