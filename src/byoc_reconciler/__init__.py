"""byoc-reconciler: poll-driven lifecycle management for BYOC projects."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from .byoc import AgentReconciler, ByocClient, ProjectReconciler
from .settings import ReconcilerSettings, SettingsError

__all__ = [
    'Reconcilers',
    'ReconcilerSettings',
    'SettingsError',
    'build_reconcilers',
]


@dataclass(frozen=True, slots=True)
class Reconcilers:
    projects: ProjectReconciler
    agents: AgentReconciler
    client: ByocClient


def build_reconcilers(
    settings: ReconcilerSettings,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> Reconcilers:
    """Wire the HTTP client and both reconcilers from one settings object."""
    errors = settings.validate()
    if errors:
        raise SettingsError('; '.join(errors))

    client = ByocClient(
        api_key=settings.api_key,
        base_url=settings.resolved_base_url,
        http_client=http_client,
        timeout_seconds=settings.http_timeout_seconds,
        log_http_traffic=settings.http_traffic_logging,
    )
    return Reconcilers(
        projects=ProjectReconciler(client, timeouts=settings.timeouts),
        agents=AgentReconciler(client, timeout=settings.timeouts.agent_create),
        client=client,
    )
