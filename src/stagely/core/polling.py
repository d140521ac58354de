"""Bounded, cancellable readiness polling.

:func:`poll_until_ready` replaces an open-ended timer: it stops on the
first successful check, on timeout, on cancellation, or when the check
itself raises a :class:`~stagely.exceptions.StagelyError`, and reports
which of those happened as a :class:`~stagely.core.models.PollOutcome`.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from stagely.core.models import PollOutcome
from stagely.exceptions import StagelyError

logger = logging.getLogger(__name__)


def poll_until_ready(
    check: Callable[[], bool],
    *,
    interval: float,
    timeout: float,
    cancel: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
    on_tick: Callable[[], None] | None = None,
) -> PollOutcome:
    """Call *check* every *interval* seconds until it returns ``True``.

    Parameters
    ----------
    check:
        Blocking readiness check.  ``False`` means "not ready yet".
    interval:
        Seconds to wait between checks.  The wait is interrupted as soon
        as *cancel* is set.
    timeout:
        Overall budget in seconds, measured with *clock*.
    cancel:
        Cancellation token; setting it ends the poll with ``CANCELLED``.
    clock:
        Monotonic time source, injectable for tests.
    on_tick:
        Called after every check that did not report ready.
    """
    token = cancel if cancel is not None else threading.Event()
    deadline = clock() + timeout
    attempt = 0

    while True:
        if token.is_set():
            return PollOutcome.CANCELLED
        if clock() >= deadline:
            logger.warning("Readiness poll timed out after %d attempts", attempt)
            return PollOutcome.TIMED_OUT

        attempt += 1
        try:
            ready = check()
        except StagelyError as exc:
            logger.error("Readiness check %d raised: %s", attempt, exc)
            return PollOutcome.ERROR
        if ready:
            logger.debug("Ready after %d attempts", attempt)
            return PollOutcome.READY

        if on_tick is not None:
            on_tick()
        remaining = deadline - clock()
        if remaining <= 0:
            continue
        token.wait(min(interval, remaining))
