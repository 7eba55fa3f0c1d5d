"""Agent reconciler tests: wait-for-connected and network tolerance."""

from __future__ import annotations

import httpx
import pytest

from byoc_reconciler.byoc.client import ByocAPIError
from byoc_reconciler.byoc.errors import ReconcileError, StatusCheckError
from byoc_reconciler.byoc.inmemory import InMemoryProjectAPI
from byoc_reconciler.byoc.models import AgentState, ProjectHandle
from byoc_reconciler.byoc.reconciler import AGENT_NETWORK_RETRY_LIMIT, AgentReconciler
from byoc_reconciler.byoc.status import ProjectStatus

HANDLE = ProjectHandle('proj-1', 'zilliz-dp-1')
PENDING, CONNECTED, INIT = 0, 90, 99


def _agent_calls(api: InMemoryProjectAPI) -> int:
    return sum(1 for name, _ in api.calls if name == 'describe_agent')


def _make(api, fast_backoff, *, timeout: float = 5.0) -> AgentReconciler:
    return AgentReconciler(api, timeout=timeout, backoff=fast_backoff)


@pytest.mark.asyncio
async def test_waits_until_connected(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[INIT, PENDING, CONNECTED])

    agent = await _make(api, fast_backoff).create(HANDLE, wait_until_ready=True)

    assert agent.status is ProjectStatus.CONNECTED
    assert agent.wait_until_ready is True
    assert _agent_calls(api) == 3


@pytest.mark.asyncio
async def test_every_other_status_is_transient(fast_backoff):
    # Statuses that halt a project create (init, failed, unknown) only delay the agent.
    api = InMemoryProjectAPI(agent_statuses=[INIT, 5, 42, CONNECTED])
    agent = await _make(api, fast_backoff).create(HANDLE, wait_until_ready=True)
    assert agent.status is ProjectStatus.CONNECTED
    assert _agent_calls(api) == 4


@pytest.mark.asyncio
async def test_not_waiting_describes_once(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[INIT, CONNECTED])

    agent = await _make(api, fast_backoff).create(HANDLE)

    assert agent.status is ProjectStatus.INIT
    assert _agent_calls(api) == 1


@pytest.mark.asyncio
async def test_not_waiting_describe_failure_reports_create(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[ByocAPIError(500, 'boom')])

    with pytest.raises(ReconcileError, match='failed to create BYOC project agent') as exc_info:
        await _make(api, fast_backoff).create(HANDLE)

    assert exc_info.value.operation == 'create_agent'
    assert isinstance(exc_info.value.__cause__, ByocAPIError)


@pytest.mark.asyncio
async def test_timeout_reports_last_status(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[INIT])

    with pytest.raises(ReconcileError, match='agent is in status: init') as exc_info:
        await _make(api, fast_backoff, timeout=0.05).create(HANDLE, wait_until_ready=True)

    assert exc_info.value.timed_out is True
    assert exc_info.value.operation == 'create_agent'


@pytest.mark.asyncio
async def test_network_errors_tolerated_up_to_limit(fast_backoff):
    errors = [httpx.ConnectError('connection refused')] * AGENT_NETWORK_RETRY_LIMIT
    api = InMemoryProjectAPI(agent_statuses=[*errors, CONNECTED])

    agent = await _make(api, fast_backoff).create(HANDLE, wait_until_ready=True)

    assert agent.status is ProjectStatus.CONNECTED
    assert _agent_calls(api) == AGENT_NETWORK_RETRY_LIMIT + 1


@pytest.mark.asyncio
async def test_network_errors_beyond_limit_halt(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[httpx.ConnectError('connection refused')])

    with pytest.raises(ReconcileError) as exc_info:
        await _make(api, fast_backoff).create(HANDLE, wait_until_ready=True)

    assert isinstance(exc_info.value.__cause__, StatusCheckError)
    assert exc_info.value.timed_out is False
    assert _agent_calls(api) == AGENT_NETWORK_RETRY_LIMIT + 1


@pytest.mark.asyncio
async def test_network_counter_resets_after_successful_describe(fast_backoff):
    err = httpx.ConnectError('connection reset')
    api = InMemoryProjectAPI(
        agent_statuses=[err, err, err, INIT, err, err, err, CONNECTED],
    )
    agent = await _make(api, fast_backoff).create(HANDLE, wait_until_ready=True)
    assert agent.status is ProjectStatus.CONNECTED


@pytest.mark.asyncio
async def test_application_error_halts_immediately(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[ByocAPIError(80001, 'invalid project')])

    with pytest.raises(ReconcileError, match='invalid project'):
        await _make(api, fast_backoff).create(HANDLE, wait_until_ready=True)

    assert _agent_calls(api) == 1


@pytest.mark.asyncio
async def test_read_refreshes_status(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[CONNECTED])
    agent = await _make(api, fast_backoff).read(AgentState(handle=HANDLE))
    assert agent.status is ProjectStatus.CONNECTED


@pytest.mark.asyncio
async def test_read_failure(fast_backoff):
    api = InMemoryProjectAPI(agent_statuses=[ByocAPIError(500, 'boom')])
    with pytest.raises(ReconcileError, match='unable to read BYOC project agent'):
        await _make(api, fast_backoff).read(AgentState(handle=HANDLE))
