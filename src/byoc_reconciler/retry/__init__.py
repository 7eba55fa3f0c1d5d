"""Backoff, network error classification and the poll loop."""

from .backoff import (
    DEFAULT_BACKOFF,
    JITTER_COEFFICIENT,
    NETWORK_BACKOFF,
    BackoffPolicy,
    backoff,
    network_backoff,
)
from .network import (
    DEFAULT_MAX_NETWORK_FAILURES,
    NetworkGiveUpError,
    is_network_error,
    is_network_give_up_error,
)
from .poll import (
    PollTimeoutError,
    RetriableError,
    poll,
    poll_with_network_resilience,
)

__all__ = [
    'BackoffPolicy',
    'DEFAULT_BACKOFF',
    'DEFAULT_MAX_NETWORK_FAILURES',
    'JITTER_COEFFICIENT',
    'NETWORK_BACKOFF',
    'NetworkGiveUpError',
    'PollTimeoutError',
    'RetriableError',
    'backoff',
    'is_network_error',
    'is_network_give_up_error',
    'network_backoff',
    'poll',
    'poll_with_network_resilience',
]
