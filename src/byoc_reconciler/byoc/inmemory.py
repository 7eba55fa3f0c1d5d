"""In-memory control-plane implementation for local runs and tests.

Satisfies the ``ProjectAPI`` protocol. Describe calls replay a scripted
sequence of status codes (the last one repeats once the script runs out);
an exception placed in the script is raised instead of returning.
"""

from __future__ import annotations

import uuid
from collections import deque
from typing import Iterable

from .models import CreatedProject, CreateProjectRequest, ProjectDescription, ProjectHandle
from .status import INIT_STATUS_CODE

Step = int | BaseException


class _Script:
    def __init__(self, steps: Iterable[Step], default: int) -> None:
        self._steps: deque[Step] = deque(steps)
        self._last: Step = default

    def next(self) -> Step:
        if self._steps:
            self._last = self._steps.popleft()
        return self._last

    def extend(self, steps: Iterable[Step]) -> None:
        self._steps.extend(steps)


class InMemoryProjectAPI:
    def __init__(
        self,
        *,
        statuses: Iterable[Step] = (),
        agent_statuses: Iterable[Step] = (),
        create_error: BaseException | None = None,
        delete_error: BaseException | None = None,
    ) -> None:
        self._statuses = _Script(statuses, default=0)
        self._agent_statuses = _Script(agent_statuses, default=INIT_STATUS_CODE)
        self._create_error = create_error
        self._delete_error = delete_error
        self.calls: list[tuple[str, str]] = []

    @property
    def describe_count(self) -> int:
        return sum(1 for name, _ in self.calls if name == 'describe_op_project')

    def script(self, *steps: Step) -> None:
        """Append status codes (or errors) for later describe calls."""
        self._statuses.extend(steps)

    async def create_op_project(self, request: CreateProjectRequest) -> CreatedProject:
        self.calls.append(('create_op_project', request.project_id))
        if self._create_error is not None:
            raise self._create_error
        return CreatedProject(
            project_id=request.project_id,
            data_plane_id=request.data_plane_id,
            job_id=f'job-{uuid.uuid4().hex[:8]}',
        )

    async def describe_op_project(self, handle: ProjectHandle) -> ProjectDescription:
        self.calls.append(('describe_op_project', handle.project_id))
        return self._describe(self._statuses.next(), handle)

    async def delete_op_project(self, handle: ProjectHandle) -> None:
        self.calls.append(('delete_op_project', handle.project_id))
        if self._delete_error is not None:
            raise self._delete_error

    async def describe_agent(self, handle: ProjectHandle) -> ProjectDescription:
        self.calls.append(('describe_agent', handle.project_id))
        return self._describe(self._agent_statuses.next(), handle)

    @staticmethod
    def _describe(step: Step, handle: ProjectHandle) -> ProjectDescription:
        if isinstance(step, BaseException):
            raise step
        return ProjectDescription(
            project_id=handle.project_id,
            data_plane_id=handle.data_plane_id,
            status_code=step,
        )
