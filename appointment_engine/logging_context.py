"""Tenant-aware logging context.

Every scheduler call runs on behalf of one tenant (one shop). The tenant
id is stored in a ContextVar and injected into each log record so a
single shop's activity can be traced through the engine.

Usage:
    from appointment_engine.logging_context import get_tenant_logger, tenant_context

    logger = get_tenant_logger(__name__)
    with tenant_context("shop-42"):
        logger.info("Queue advanced")  # record.tenant_id == "shop-42"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_tenant_id: ContextVar[str] = ContextVar("tenant_id", default="NO_TENANT")


def get_tenant_id() -> str:
    """Retrieve the current tenant id."""
    return _tenant_id.get()


@contextmanager
def tenant_context(tenant_id: str) -> Iterator[None]:
    """Bind ``tenant_id`` for the duration of the block, then restore."""
    token = _tenant_id.set(tenant_id)
    try:
        yield
    finally:
        _tenant_id.reset(token)


class TenantIdFilter(logging.Filter):
    """Injects tenant_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tenant_id = _tenant_id.get()  # type: ignore[attr-defined]
        return True


def get_tenant_logger(name: str) -> logging.Logger:
    """Return a logger with the TenantIdFilter attached.

    The filter adds ``tenant_id`` to each record so formatters can
    include ``%(tenant_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, TenantIdFilter) for f in logger.filters):
        logger.addFilter(TenantIdFilter())
    return logger
