"""Drives BYOC-I projects and their agents through create / delete.

Each operation issues at most one mutating request and then polls a
describe probe, translating the reported status code into "keep waiting",
"done" or "stop":

Create (wait for ``running``):
  connected, pending -> keep waiting
  running            -> done
  init               -> stop, the agent handshake never happened
  anything else      -> stop, unknown state

Delete (wait for ``deleted``):
  deleting           -> keep waiting
  deleted            -> done
  anything else      -> stop, unknown state

A describe call that itself fails stops the wait; only the agent probe
tolerates a few consecutive network failures.
"""

from __future__ import annotations

import inspect
from dataclasses import replace
from typing import Awaitable, Callable, ContextManager, Protocol

import structlog

from ..observability.logging import get_logger, operation_scope
from ..retry.backoff import DEFAULT_BACKOFF, BackoffPolicy
from ..retry.network import is_network_error
from ..retry.poll import RetriableError, poll
from .errors import (
    ConsoleDeletionRequired,
    InvalidProjectState,
    ReconcileError,
    StatusCheckError,
)
from .models import (
    AgentState,
    CreatedProject,
    CreateProjectRequest,
    PENDING_STATUS_CODE,
    ProjectDescription,
    ProjectHandle,
    ProjectState,
)
from .status import ProjectStatus, describe_status
from .timeouts import DEFAULT_TIMEOUTS, OperationTimeouts

logger = get_logger(__name__)

# Consecutive network failures the agent probe absorbs before halting.
AGENT_NETWORK_RETRY_LIMIT = 3

StateHook = Callable[[ProjectState], Awaitable[None] | None]


class ProjectAPI(Protocol):
    """Remote operations the reconcilers consume."""

    async def create_op_project(self, request: CreateProjectRequest) -> CreatedProject:
        ...

    async def describe_op_project(self, handle: ProjectHandle) -> ProjectDescription:
        ...

    async def delete_op_project(self, handle: ProjectHandle) -> None:
        ...

    async def describe_agent(self, handle: ProjectHandle) -> ProjectDescription:
        ...


def _operation_scope(operation: str, handle: ProjectHandle) -> ContextManager[str]:
    return operation_scope(
        operation,
        project_id=handle.project_id,
        data_plane_id=handle.data_plane_id,
    )


def _status_check_error(exc: BaseException) -> StatusCheckError:
    error = StatusCheckError(f'failed to check BYOC project status: {exc}')
    error.__cause__ = exc
    return error


async def _notify(hook: StateHook | None, state: ProjectState) -> None:
    if hook is None:
        return
    result = hook(state)
    if inspect.isawaitable(result):
        await result


class ProjectReconciler:
    """Create, delete, read and update BYOC-I projects.

    The reconciler keeps no state between calls; every method takes the
    caller's last known :class:`ProjectState` and returns a new one.
    """

    def __init__(
        self,
        api: ProjectAPI,
        *,
        timeouts: OperationTimeouts = DEFAULT_TIMEOUTS,
        backoff: BackoffPolicy = DEFAULT_BACKOFF,
    ) -> None:
        self._api = api
        self._timeouts = timeouts
        self._backoff = backoff

    async def create(
        self,
        request: CreateProjectRequest,
        *,
        wait_until_ready: bool = True,
        timeout: float | None = None,
        on_state: StateHook | None = None,
    ) -> ProjectState:
        """Create a project and, by default, wait until it is running.

        ``on_state`` is called with the seeded ``pending`` state as soon as
        the control plane accepts the request, and again with the final
        state, so the caller can persist progress before a long wait.
        """
        with _operation_scope('create_project', request.handle):
            logger.info('project_create_started', wait_until_ready=wait_until_ready)
            try:
                created = await self._api.create_op_project(request)
            except Exception as exc:
                raise ReconcileError(
                    'create_project', f'failed to create BYOC project: {exc}'
                ) from exc

            # Every later describe and delete addresses the ids the control
            # plane assigned, not the ones requested.
            handle = ProjectHandle(
                created.project_id or request.project_id,
                created.data_plane_id or request.data_plane_id,
            )
            structlog.contextvars.bind_contextvars(
                project_id=handle.project_id,
                data_plane_id=handle.data_plane_id,
            )
            state = ProjectState(
                handle=handle,
                id=handle.project_id,
                status_code=PENDING_STATUS_CODE,
                ext_config=request.ext_config,
                request=request,
            )
            await _notify(on_state, state)

            if not wait_until_ready:
                try:
                    description = await self._api.describe_op_project(state.handle)
                except Exception as exc:
                    raise ReconcileError(
                        'create_project', f'failed to describe BYOC project: {exc}'
                    ) from exc
                state = replace(state, status_code=description.status_code)
                logger.info('project_create_returned_early', status=str(state.status))
                return state

            try:
                description = await poll(
                    self._running_probe(state.handle),
                    timeout=timeout if timeout is not None else self._timeouts.create,
                    backoff=self._backoff,
                    operation='create_project',
                )
            except Exception as exc:
                raise ReconcileError(
                    'create_project', f'failed to create BYOC project: {exc}'
                ) from exc

            state = replace(state, status_code=description.status_code)
            await _notify(on_state, state)
            logger.info('project_create_finished', status=str(state.status))
            return state

    def _running_probe(
        self, handle: ProjectHandle,
    ) -> Callable[[], Awaitable[ProjectDescription]]:
        async def probe() -> ProjectDescription:
            try:
                project = await self._api.describe_op_project(handle)
            except Exception as exc:
                raise RetriableError.halting(_status_check_error(exc)) from exc

            status = project.status
            if status is ProjectStatus.CONNECTED:
                raise RetriableError.transient(
                    'agent already connected, BYOC project is deploying, please wait...'
                )
            if status is ProjectStatus.PENDING:
                raise RetriableError.transient(
                    'BYOC project is pending status, please wait...'
                )
            if status is ProjectStatus.RUNNING:
                return project
            if status is ProjectStatus.INIT:
                raise RetriableError.halting(
                    InvalidProjectState(
                        project.status_code,
                        'BYOC project should be connected before it can be '
                        f'created, got {describe_status(project.status_code)}',
                    )
                )
            raise RetriableError.halting(InvalidProjectState.unknown(project.status_code))

        return probe

    async def delete(
        self,
        state: ProjectState,
        *,
        timeout: float | None = None,
    ) -> None:
        """Request deletion and wait until the project reports ``deleted``."""
        with _operation_scope('delete_project', state.handle):
            logger.info('project_delete_started')
            try:
                await self._api.delete_op_project(state.handle)
            except Exception as exc:
                raise ReconcileError(
                    'delete_project', f'failed to delete BYOC project: {exc}'
                ) from exc

            await self._wait_for_deletion(state.handle, timeout)

    async def confirm_console_deletion(
        self,
        state: ProjectState,
        *,
        timeout: float | None = None,
    ) -> None:
        """Confirm a deletion that was started from the console.

        Peeks at the current status first and refuses unless the project is
        already ``deleted``; no delete request is ever sent. The status can
        change between the peek and the wait, which is accepted: the control
        plane remains the source of truth and the wait re-checks it.
        """
        with _operation_scope('delete_project', state.handle):
            try:
                project = await self._api.describe_op_project(state.handle)
            except Exception as exc:
                raise ReconcileError(
                    'delete_project', f'failed to describe BYOC project: {exc}'
                ) from exc

            logger.info('project_delete_peek', status=describe_status(project.status_code))
            if project.status is not ProjectStatus.DELETED:
                raise ConsoleDeletionRequired(project.status_code)

            await self._wait_for_deletion(state.handle, timeout)

    async def _wait_for_deletion(
        self, handle: ProjectHandle, timeout: float | None,
    ) -> None:
        async def probe() -> None:
            try:
                project = await self._api.describe_op_project(handle)
            except Exception as exc:
                raise RetriableError.halting(_status_check_error(exc)) from exc

            if project.status is ProjectStatus.DELETING:
                raise RetriableError.transient('BYOC project is still deleting...')
            if project.status is ProjectStatus.DELETED:
                return None
            raise RetriableError.halting(InvalidProjectState.unknown(project.status_code))

        try:
            await poll(
                probe,
                timeout=timeout if timeout is not None else self._timeouts.delete,
                backoff=self._backoff,
                operation='delete_project',
            )
        except Exception as exc:
            raise ReconcileError(
                'delete_project', f'failed to delete BYOC project: {exc}'
            ) from exc
        logger.info('project_delete_finished')

    async def read(self, state: ProjectState) -> ProjectState:
        """Refresh the observed status of an existing project."""
        try:
            project = await self._api.describe_op_project(state.handle)
        except Exception as exc:
            raise ReconcileError(
                'read_project', f'unable to read BYOC project: {exc}'
            ) from exc
        return replace(
            state,
            handle=replace(state.handle, data_plane_id=project.data_plane_id),
            id=project.project_id or state.id,
            status_code=project.status_code,
        )

    def update(self, planned: ProjectState, prior: ProjectState) -> ProjectState:
        """Carry server-assigned fields from ``prior`` into ``planned``.

        Every other field requires replacement, so no remote call is made.
        """
        return replace(
            planned,
            id=prior.id,
            status_code=prior.status_code,
            handle=ProjectHandle(planned.project_id, prior.data_plane_id),
        )


class AgentReconciler:
    """Wait for a project's data-plane agent to connect."""

    def __init__(
        self,
        api: ProjectAPI,
        *,
        timeout: float = DEFAULT_TIMEOUTS.agent_create,
        backoff: BackoffPolicy = DEFAULT_BACKOFF,
    ) -> None:
        self._api = api
        self._timeout = timeout
        self._backoff = backoff

    async def create(
        self,
        handle: ProjectHandle,
        *,
        wait_until_ready: bool = False,
        timeout: float | None = None,
    ) -> AgentState:
        with _operation_scope('create_agent', handle):
            state = AgentState(handle=handle, wait_until_ready=wait_until_ready)

            if not wait_until_ready:
                try:
                    agent = await self._api.describe_agent(handle)
                except Exception as exc:
                    raise ReconcileError(
                        'create_agent', f'failed to create BYOC project agent: {exc}'
                    ) from exc
                return replace(state, status_code=agent.status_code)

            network_retries = 0

            async def probe() -> ProjectDescription:
                nonlocal network_retries
                try:
                    agent = await self._api.describe_agent(handle)
                except Exception as exc:
                    if is_network_error(exc) and network_retries < AGENT_NETWORK_RETRY_LIMIT:
                        network_retries += 1
                        raise RetriableError.transient(exc) from exc
                    raise RetriableError.halting(_status_check_error(exc)) from exc

                network_retries = 0
                if agent.status is not ProjectStatus.CONNECTED:
                    raise RetriableError.transient(f'agent is in status: {agent.status}')
                return agent

            try:
                agent = await poll(
                    probe,
                    timeout=timeout if timeout is not None else self._timeout,
                    backoff=self._backoff,
                    operation='create_agent',
                )
            except Exception as exc:
                raise ReconcileError(
                    'create_agent', f'failed to create BYOC project agent: {exc}'
                ) from exc

            logger.info('agent_connected')
            return replace(state, status_code=agent.status_code)

    async def read(self, state: AgentState) -> AgentState:
        try:
            agent = await self._api.describe_agent(state.handle)
        except Exception as exc:
            raise ReconcileError(
                'read_agent', f'unable to read BYOC project agent: {exc}'
            ) from exc
        return replace(state, status_code=agent.status_code)
