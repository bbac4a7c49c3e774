# core/db.py
"""
Transaction helpers shared by the participation services.

Every read-then-write in the services runs inside atomic_with_retry():
row locks (select_for_update) serialize writers on the same record, and
lock timeouts / serialization failures raised by the database are retried
here, below the business rules. Business errors are never retried.
"""
import functools
import logging

from django.conf import settings
from django.db import OperationalError, transaction
from rest_framework import status
from rest_framework.exceptions import APIException

logger = logging.getLogger("participation.core")


class TransientStoreFailure(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The request conflicted with another update. Please try again."
    default_code = "transient_failure"


def atomic_with_retry(func=None, *, attempts=None):
    """
    Run the decorated callable inside transaction.atomic().

    OperationalError (deadlock, lock timeout, serialization failure) rolls
    the attempt back and re-runs it; once attempts are exhausted the caller
    gets TransientStoreFailure and may safely re-issue the request.

    When already inside an atomic block the callable runs once in a
    savepoint: the outer transaction owns the retry decision.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            if transaction.get_connection().in_atomic_block:
                with transaction.atomic():
                    return fn(*args, **kwargs)

            max_attempts = attempts or getattr(settings, "PARTICIPATION_TRANSACTION_RETRIES", 3)
            for attempt in range(1, max_attempts + 1):
                try:
                    with transaction.atomic():
                        return fn(*args, **kwargs)
                except OperationalError as e:
                    logger.warning(
                        "Transaction conflict in %s (attempt %s/%s): %s",
                        fn.__qualname__, attempt, max_attempts, e,
                    )
            raise TransientStoreFailure()

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
