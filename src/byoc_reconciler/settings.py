"""Reconciler configuration settings.

ReconcilerSettings is the single configuration object accepted by
``build_reconcilers()``. It is intentionally a plain dataclass (not
env-coupled) so tests can inject config without touching os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .byoc.client import GLOBAL_BASE_URL, base_url_for_region
from .byoc.timeouts import DEFAULT_TIMEOUTS, OperationTimeouts

_MINUTE = 60.0


class SettingsError(ValueError):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True, slots=True)
class ReconcilerSettings:
    """Configuration for the BYOC project reconcilers.

    All fields except ``api_key`` have sensible defaults.
    """

    # ── Control plane ──────────────────────────────────────────────
    api_key: str = ""
    """Bearer API key for control-plane calls. Never log this."""

    base_url: str = ""
    """Explicit API base URL. Empty means derive from cloud_region_id."""

    cloud_region_id: str = ""
    """Region id such as aws-us-east-2; picks the API endpoint."""

    http_timeout_seconds: float = 30.0
    """Per-request HTTP timeout."""

    http_traffic_logging: bool = False
    """Log every request/response line at debug level."""

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"
    """Either json or console."""

    # ── Deadlines ──────────────────────────────────────────────────
    timeouts: OperationTimeouts = field(default_factory=OperationTimeouts)

    @property
    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url
        if self.cloud_region_id:
            return base_url_for_region(self.cloud_region_id)
        return GLOBAL_BASE_URL

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.api_key:
            errors.append("api_key is required")
        if self.http_timeout_seconds <= 0:
            errors.append("http_timeout_seconds must be > 0")
        if self.log_format not in ("json", "console"):
            errors.append(f"log_format must be json or console, got {self.log_format!r}")
        errors.extend(self.timeouts.validate())
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ReconcilerSettings:
        """Build settings from environment variables.

        Tests should construct ReconcilerSettings directly.
        """
        if env is None:
            env = dict(os.environ)

        defaults = DEFAULT_TIMEOUTS
        timeouts = OperationTimeouts(
            create=_minutes(env, "BYOC_CREATE_TIMEOUT_MINUTES", defaults.create),
            delete=_minutes(env, "BYOC_DELETE_TIMEOUT_MINUTES", defaults.delete),
            update=_minutes(env, "BYOC_UPDATE_TIMEOUT_MINUTES", defaults.update),
            agent_create=_minutes(env, "BYOC_AGENT_TIMEOUT_MINUTES", defaults.agent_create),
        )

        return cls(
            api_key=env.get("ZILLIZCLOUD_API_KEY", ""),
            base_url=env.get("ZILLIZCLOUD_BASE_URL", ""),
            cloud_region_id=env.get("ZILLIZCLOUD_CLOUD_REGION_ID", ""),
            http_timeout_seconds=_float(env, "ZILLIZCLOUD_HTTP_TIMEOUT_SECONDS", 30.0),
            http_traffic_logging=env.get("ZILLIZCLOUD_DEBUG", "").lower() == "true",
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_format=env.get("LOG_FORMAT", "json"),
            timeouts=timeouts,
        )


def _float(env: dict[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise SettingsError(f"{key} must be a number, got {raw!r}") from exc


def _minutes(env: dict[str, str], key: str, default_seconds: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default_seconds
    return _float(env, key, 0.0) * _MINUTE
