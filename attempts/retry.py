import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError)


def retry_on_transient(func, *args, retries=None, delay=None, **kwargs):
    """Call ``func`` and retry it on transient database errors.

    Only use this with idempotent operations (answer upserts, the guarded
    submit transition). The last error propagates once the budget is spent.
    """
    retries = settings.ATTEMPT_STORE_RETRIES if retries is None else retries
    delay = settings.ATTEMPT_STORE_RETRY_DELAY if delay is None else delay

    attempt = 0
    while True:
        try:
            return func(*args, **kwargs)
        except TRANSIENT_ERRORS as exc:
            attempt += 1
            if attempt > retries:
                logger.error(f"{func.__name__} failed after {retries} retries: {exc}")
                raise
            logger.warning(f"Transient store error in {func.__name__} (retry {attempt}/{retries}): {exc}")
            time.sleep(delay * attempt)
