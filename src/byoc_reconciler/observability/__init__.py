"""Observability infrastructure for byoc-reconciler.

Provides structured logging and Prometheus metrics for the poll engine
and the project reconcilers.

Quick start::

    from byoc_reconciler.observability import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
"""

from .logging import configure_logging, get_logger, operation_id_ctx, operation_scope
from .metrics import metrics_text

__all__ = [
    "configure_logging",
    "get_logger",
    "metrics_text",
    "operation_id_ctx",
    "operation_scope",
]
