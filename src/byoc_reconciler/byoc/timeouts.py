"""Per-operation deadlines for project reconciliation."""

from __future__ import annotations

from dataclasses import dataclass

_MINUTE = 60.0


@dataclass(frozen=True, slots=True)
class OperationTimeouts:
    """Per-operation deadlines in seconds."""

    create: float = 120 * _MINUTE
    delete: float = 120 * _MINUTE
    update: float = 60 * _MINUTE
    agent_create: float = 120 * _MINUTE

    def validate(self) -> list[str]:
        errors: list[str] = []
        for name in ('create', 'delete', 'update', 'agent_create'):
            if getattr(self, name) <= 0:
                errors.append(f'{name} timeout must be > 0')
        return errors


DEFAULT_TIMEOUTS = OperationTimeouts()
