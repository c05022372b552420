"""Bounded polling built on tenacity.

``poll_until`` is the single waiting primitive of the engine: every blocking
wait (deletion confirmation, readiness) goes through it so the interval and
deadline semantics are the same everywhere.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable

import structlog
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from cluster_addons.integrations.kubernetes.exceptions import KubernetesTimeoutError

logger = structlog.get_logger()


def max_poll_attempts(interval: float, timeout: float) -> int:
    """Number of checks made by an immediate-first poll within ``timeout``."""
    return math.floor(timeout / interval) + 1


def poll_until(
    condition: Callable[[], bool],
    *,
    interval: float,
    timeout: float,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Call ``condition`` until it returns True.

    The first check happens immediately, then every ``interval`` seconds. The
    poll gives up once ``timeout`` seconds have elapsed or
    ``timeout / interval + 1`` checks have been made, whichever comes first.

    Args:
        condition: Returns True when the awaited state is reached. Exceptions
            it raises abort the poll and propagate unchanged.
        interval: Seconds between checks.
        timeout: Upper bound on the wait in seconds.
        description: What is being waited for (used in logs and errors).
        sleep: Sleep function (tests pass a no-op).

    Raises:
        KubernetesTimeoutError: If the condition is still False at the bound.
    """
    if interval <= 0 or timeout <= 0:
        raise ValueError("interval and timeout must be positive")

    def _log_retry(retry_state: RetryCallState) -> None:
        logger.debug(
            "poll_condition_not_met",
            waiting_for=description,
            attempt=retry_state.attempt_number,
        )

    retrying = Retrying(
        retry=retry_if_result(lambda done: not done),
        stop=stop_after_attempt(max_poll_attempts(interval, timeout)) | stop_after_delay(timeout),
        wait=wait_fixed(interval),
        sleep=sleep,
        before_sleep=_log_retry,
    )

    try:
        retrying(condition)
    except RetryError as e:
        raise KubernetesTimeoutError(
            message=f"Timed out waiting for {description}",
            timeout_seconds=timeout,
        ) from e
