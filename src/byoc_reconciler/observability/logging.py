"""Log setup for reconciliation runs.

A single create or delete can poll the control plane for up to two hours,
so every line a run emits carries the same ``operation_id`` plus the
project address it is working on. Library code logs two ways and both end
up in one stream:

- structlog loggers (the poll loop, the reconcilers) with key/value events;
- stdlib ``logging`` (the HTTP client) with ``extra=`` fields, folded into
  the same rendered record.

Entry points::

    configure_logging(level="DEBUG", json_output=False)
    with operation_scope("delete_project", project_id=..., data_plane_id=...):
        ...
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

import structlog

# Id of the reconciliation operation running in the current task.
operation_id_ctx: ContextVar[str | None] = ContextVar("operation_id", default=None)

# Loggers of the HTTP stack; per-request lines only under http_traffic_logging.
_CHATTY_LOGGERS = ("httpx", "httpcore")

_configured = False


def _add_operation_id(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    oid = operation_id_ctx.get()
    if oid is not None:
        event_dict["operation_id"] = oid
    return event_dict


@contextmanager
def operation_scope(operation: str, **fields: Any) -> Iterator[str]:
    """Tag log lines inside the block with a fresh operation id.

    ``fields`` (typically the project address) are bound for the same span
    and dropped again on exit, also when the block raises.
    """
    operation_id = uuid.uuid4().hex[:12]
    token = operation_id_ctx.set(operation_id)
    try:
        with structlog.contextvars.bound_contextvars(operation=operation, **fields):
            yield operation_id
    finally:
        operation_id_ctx.reset(token)


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        _add_operation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
) -> None:
    """Route structlog and stdlib records through one stdout handler.

    ``level`` and ``json_output`` fall back to LOG_LEVEL and LOG_FORMAT
    (``json`` or ``console``). Only the first call has any effect.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = level or os.environ.get("LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "json") == "json"

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*pre_chain, structlog.stdlib.ExtraAdder()],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer()
                if json_output
                else structlog.dev.ConsoleRenderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
