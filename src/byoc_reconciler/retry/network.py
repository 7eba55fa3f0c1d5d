"""Transient network error classification.

The HTTP stack does not wrap every transient failure in a typed error (a
proxy or the control plane itself may hand back a plain message), so the
classifier falls back to matching well-known substrings in the message.
"""

from __future__ import annotations

import socket

import httpx

DEFAULT_MAX_NETWORK_FAILURES = 3

_NETWORK_ERROR_TYPES: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.ProxyError,
    ConnectionError,
    TimeoutError,
    socket.gaierror,
)

NETWORK_ERROR_PATTERNS = (
    'connection refused',
    'connection reset',
    'connection timeout',
    'network unreachable',
    'temporary failure',
    'timeout',
    'no such host',
    'i/o timeout',
    'tls handshake timeout',
    'context deadline exceeded',
)


def is_network_error(err: BaseException | None) -> bool:
    """Return True when ``err`` looks like a transient network condition."""
    if err is None:
        return False

    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, _NETWORK_ERROR_TYPES):
            return True
        current = current.__cause__

    message = str(err).lower()
    return any(pattern in message for pattern in NETWORK_ERROR_PATTERNS)


class NetworkGiveUpError(Exception):
    """Raised when a poll saw more network failures than it tolerates."""

    def __init__(self, attempts: int, message: str) -> None:
        self.attempts = attempts
        self.message = message
        super().__init__(
            f'network retries exhausted after {attempts} attempts: {message}'
        )


def is_network_give_up_error(err: BaseException | None) -> bool:
    return isinstance(err, NetworkGiveUpError)
