"""BYOC project lifecycle statuses.

The control plane reports a project's status as an integer. Codes 0-8 are
its own enumeration; 90 and 99 are out-of-band values used by the
agent handshake (``connected``, ``init``) that the control plane's own
enumeration does not define. Any other code is ``unknown`` and the raw
integer is kept alongside for diagnostics.

If the control plane ever grows a native status in the 90s, it will
collide with the handshake codes; keep them as the named constants below
so such a collision is a one-line change.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

CONNECTED_STATUS_CODE = 90
INIT_STATUS_CODE = 99


class ProjectStatus(str, Enum):
    """Named lifecycle state of a BYOC project."""

    INIT = 'init'
    CONNECTED = 'connected'
    PENDING = 'pending'
    RUNNING = 'running'
    DELETING = 'deleting'
    DELETED = 'deleted'
    UPGRADING = 'upgrading'
    FAILED = 'failed'
    STOPPING = 'stopping'
    STOPPED = 'stopped'
    RESUMING = 'resuming'
    UNKNOWN = 'unknown'

    @property
    def code(self) -> int | None:
        """Raw status code, or None for ``UNKNOWN``."""
        return _CODE_BY_STATUS.get(self)

    def __str__(self) -> str:
        return self.value


STATUS_BY_CODE: Mapping[int, ProjectStatus] = MappingProxyType(
    {
        0: ProjectStatus.PENDING,
        1: ProjectStatus.RUNNING,
        2: ProjectStatus.DELETING,
        3: ProjectStatus.DELETED,
        4: ProjectStatus.UPGRADING,
        5: ProjectStatus.FAILED,
        6: ProjectStatus.STOPPING,
        7: ProjectStatus.STOPPED,
        8: ProjectStatus.RESUMING,
        CONNECTED_STATUS_CODE: ProjectStatus.CONNECTED,
        INIT_STATUS_CODE: ProjectStatus.INIT,
    }
)

_CODE_BY_STATUS: Mapping[ProjectStatus, int] = MappingProxyType(
    {status: code for code, status in STATUS_BY_CODE.items()}
)


def status_from_code(code: int) -> ProjectStatus:
    """Map a raw status code to its named state."""
    return STATUS_BY_CODE.get(code, ProjectStatus.UNKNOWN)


def describe_status(code: int) -> str:
    """Render a raw code for messages, e.g. ``running(1)``."""
    return f'{status_from_code(code).value}({code})'
