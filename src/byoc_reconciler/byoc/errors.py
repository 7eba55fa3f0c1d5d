"""Reconciliation error hierarchy.

Every failure that leaves a reconciler is a :class:`ReconcileError` naming
the operation; the root cause (halted status, poll timeout, HTTP error)
stays reachable through ``__cause__``.
"""

from __future__ import annotations

from ..retry.poll import PollTimeoutError
from .status import describe_status

CONSOLE_DELETION_MESSAGE = (
    'please initiate the project deletion directly from the console and wait '
    'for that process to fully complete. Once the project is confirmed as '
    'deleted from the console, you can then attempt to delete it here'
)


class ReconcileError(Exception):
    """A create / delete / read of a BYOC resource failed."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(message)

    @property
    def timed_out(self) -> bool:
        """True when the operation ran out of time rather than halting."""
        return isinstance(self.__cause__, PollTimeoutError)


class InvalidProjectState(ValueError):
    """The project reports a status the protocol cannot proceed from."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def unknown(cls, status_code: int) -> InvalidProjectState:
        return cls(
            status_code,
            f'BYOC project is in unknown state: {describe_status(status_code)}',
        )


class StatusCheckError(RuntimeError):
    """A describe call failed while waiting on a status transition."""


class ConsoleDeletionRequired(ReconcileError):
    """The project must be deleted from the console before confirming here."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__('delete_project', CONSOLE_DELETION_MESSAGE)
