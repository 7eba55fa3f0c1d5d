"""Deadline-bounded poll loop over a caller-supplied probe.

A probe is a no-argument coroutine function. Each call either returns the
value the caller is waiting for, or raises :class:`RetriableError`:

- ``halt=True``: the condition will never hold on its own, stop now and
  surface the wrapped error unchanged.
- ``halt=False``: expected intermediate state, back off and probe again.

The loop owns a deadline ``timeout`` seconds from the first probe. Only the
wait between attempts is bounded by it: a probe that is already running is
never interrupted, the deadline is checked again once it returns. Callers
cancel by cancelling the task (or wrapping the call in ``asyncio.timeout``);
that interrupts a pending wait immediately.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from ..observability.logging import get_logger
from ..observability.metrics import (
    POLL_ATTEMPTS_TOTAL,
    POLL_DURATION_SECONDS,
    POLL_OUTCOMES_TOTAL,
)
from .backoff import DEFAULT_BACKOFF, NETWORK_BACKOFF, BackoffPolicy
from .network import (
    DEFAULT_MAX_NETWORK_FAILURES,
    NetworkGiveUpError,
    is_network_error,
)

logger = get_logger(__name__)

T = TypeVar('T')

Probe = Callable[[], Awaitable[T]]


class RetriableError(Exception):
    """Probe failure tagged with whether polling should stop."""

    def __init__(self, error: BaseException | str, *, halt: bool = False) -> None:
        if isinstance(error, str):
            error = RuntimeError(error)
        self.error = error
        self.halt = halt
        super().__init__(str(error))

    @classmethod
    def halting(cls, error: BaseException | str) -> RetriableError:
        return cls(error, halt=True)

    @classmethod
    def transient(cls, error: BaseException | str) -> RetriableError:
        return cls(error, halt=False)


class PollTimeoutError(TimeoutError):
    """The deadline passed while the probe only reported transient state."""

    def __init__(self, last_error: BaseException | None, attempts: int) -> None:
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f'timed out: {last_error}')


async def poll(
    probe: Probe[T],
    *,
    timeout: float,
    backoff: BackoffPolicy = DEFAULT_BACKOFF,
    operation: str = 'poll',
) -> T:
    """Call ``probe`` until it returns, halts, or ``timeout`` seconds pass.

    Returns the probe's value. Raises the wrapped error of a halting
    :class:`RetriableError`, or :class:`PollTimeoutError` carrying the last
    transient error once the deadline passes.
    """
    return await _run(
        probe,
        timeout=timeout,
        backoff=backoff,
        network_backoff=None,
        max_network_failures=None,
        operation=operation,
    )


async def poll_with_network_resilience(
    probe: Probe[T],
    *,
    timeout: float,
    max_network_failures: int = DEFAULT_MAX_NETWORK_FAILURES,
    backoff: BackoffPolicy = DEFAULT_BACKOFF,
    network_backoff: BackoffPolicy = NETWORK_BACKOFF,
    operation: str = 'poll',
) -> T:
    """Like :func:`poll`, with a budget for transient network failures.

    Transient errors that look like connectivity problems wait on the
    slower ``network_backoff`` schedule. Once more than
    ``max_network_failures`` of them have been seen the poll gives up with
    :class:`NetworkGiveUpError` instead of waiting for the deadline.
    """
    if max_network_failures < 0:
        raise ValueError('max_network_failures must be >= 0')
    return await _run(
        probe,
        timeout=timeout,
        backoff=backoff,
        network_backoff=network_backoff,
        max_network_failures=max_network_failures,
        operation=operation,
    )


async def _run(
    probe: Probe[T],
    *,
    timeout: float,
    backoff: BackoffPolicy,
    network_backoff: BackoffPolicy | None,
    max_network_failures: int | None,
    operation: str,
) -> T:
    if timeout < 0:
        raise ValueError('timeout must be >= 0')

    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + timeout
    attempt = 0
    network_failures = 0
    last_error: BaseException | None = None
    outcome = 'error'

    try:
        while True:
            attempt += 1
            try:
                value = await probe()
            except RetriableError as exc:
                if exc.halt:
                    POLL_ATTEMPTS_TOTAL.labels(operation=operation, result='halt').inc()
                    logger.warning(
                        'poll_halted',
                        operation=operation,
                        attempt=attempt,
                        error=str(exc.error),
                    )
                    outcome = 'halted'
                    raise exc.error from exc.error.__cause__
                POLL_ATTEMPTS_TOTAL.labels(operation=operation, result='transient').inc()
                last_error = exc.error
            else:
                POLL_ATTEMPTS_TOTAL.labels(operation=operation, result='success').inc()
                logger.info('poll_succeeded', operation=operation, attempts=attempt)
                outcome = 'success'
                return value

            policy = backoff
            if max_network_failures is not None and is_network_error(last_error):
                network_failures += 1
                logger.info(
                    'poll_network_failure',
                    operation=operation,
                    attempt=attempt,
                    network_failures=network_failures,
                )
                if network_failures > max_network_failures:
                    outcome = 'network_give_up'
                    raise NetworkGiveUpError(
                        network_failures,
                        f'network errors exceeded limit of {max_network_failures}',
                    ) from last_error
                if network_backoff is not None:
                    policy = network_backoff

            wait = policy.delay(attempt)
            remaining = deadline - loop.time()
            logger.info(
                'poll_attempt',
                operation=operation,
                attempt=attempt,
                error=str(last_error),
                wait=round(min(wait, max(remaining, 0.0)), 3),
            )
            if remaining <= 0:
                outcome = 'timeout'
                raise PollTimeoutError(last_error, attempt) from last_error
            if wait >= remaining:
                await asyncio.sleep(remaining)
                outcome = 'timeout'
                raise PollTimeoutError(last_error, attempt) from last_error
            await asyncio.sleep(wait)
    except asyncio.CancelledError:
        outcome = 'cancelled'
        raise
    finally:
        POLL_OUTCOMES_TOTAL.labels(operation=operation, outcome=outcome).inc()
        POLL_DURATION_SECONDS.labels(operation=operation).observe(
            loop.time() - started
        )
        if outcome == 'timeout':
            logger.warning(
                'poll_timed_out',
                operation=operation,
                attempts=attempt,
                error=str(last_error),
            )
