"""Network error classifier tests."""

from __future__ import annotations

import socket

import httpx
import pytest

from byoc_reconciler.retry.network import (
    NetworkGiveUpError,
    is_network_error,
    is_network_give_up_error,
)


class TestIsNetworkError:
    def test_none_is_not_network_error(self):
        assert is_network_error(None) is False

    @pytest.mark.parametrize(
        'message',
        [
            'dial tcp: i/o timeout',
            'context deadline exceeded',
            'dial tcp 10.0.0.1:443: connect: connection refused',
            'read: connection reset by peer',
            'net/http: TLS handshake timeout',
            'lookup api.example.com: no such host',
            'Temporary failure in name resolution',
            'connect: network unreachable',
        ],
    )
    def test_message_patterns(self, message):
        assert is_network_error(RuntimeError(message)) is True

    def test_pattern_match_is_case_insensitive(self):
        assert is_network_error(RuntimeError('Request TIMEOUT')) is True

    @pytest.mark.parametrize(
        'message',
        ['resource not found', 'BYOC project is pending status', 'invalid api key'],
    )
    def test_semantic_errors(self, message):
        assert is_network_error(RuntimeError(message)) is False

    @pytest.mark.parametrize(
        'err',
        [
            httpx.ConnectError('boom'),
            httpx.ReadTimeout('slow'),
            httpx.ReadError('eof'),
            ConnectionResetError('peer'),
            TimeoutError(),
            socket.gaierror(-2, 'Name or service not known'),
        ],
    )
    def test_transport_types(self, err):
        assert is_network_error(err) is True

    def test_wrapped_transport_error_is_detected(self):
        try:
            try:
                raise httpx.ConnectError('boom')
            except httpx.ConnectError as inner:
                raise RuntimeError('describe failed') from inner
        except RuntimeError as outer:
            assert is_network_error(outer) is True

    def test_http_status_error_is_not_network(self):
        request = httpx.Request('GET', 'https://api.example.com')
        response = httpx.Response(400, request=request)
        err = httpx.HTTPStatusError('bad request', request=request, response=response)
        assert is_network_error(err) is False


class TestNetworkGiveUpError:
    def test_message_records_attempts(self):
        err = NetworkGiveUpError(4, 'network errors exceeded limit of 3')
        assert err.attempts == 4
        assert str(err) == (
            'network retries exhausted after 4 attempts: '
            'network errors exceeded limit of 3'
        )

    def test_recognizer(self):
        assert is_network_give_up_error(NetworkGiveUpError(1, 'x')) is True
        assert is_network_give_up_error(RuntimeError('x')) is False
        assert is_network_give_up_error(None) is False
