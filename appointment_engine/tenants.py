"""
Tenant registry: one Scheduler per shop.

Each tenant gets exactly one Scheduler, created on first use and reused
afterwards, so all of a shop's mutations funnel through the same lock.
The repository factory decides where each tenant's data lives.
"""

import logging
import threading
from typing import Callable, Optional

from appointment_engine.config import AppConfig, settings
from appointment_engine.notifications import NotificationDispatcher
from appointment_engine.repository import InMemoryRepository, Repository
from appointment_engine.scheduler import Scheduler

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[str], Repository]


class TenantRegistry:
    """Lazily creates and caches a Scheduler per tenant id."""

    def __init__(
        self,
        repository_factory: RepositoryFactory = lambda tenant_id: InMemoryRepository(),
        notifier: Optional[NotificationDispatcher] = None,
        config: AppConfig = settings,
    ) -> None:
        self._repository_factory = repository_factory
        self._notifier = notifier if notifier is not None else NotificationDispatcher()
        self._config = config
        self._schedulers: dict[str, Scheduler] = {}
        self._lock = threading.Lock()

    def get(self, tenant_id: str) -> Scheduler:
        """Return the tenant's scheduler, creating it on first use."""
        if not tenant_id or not tenant_id.strip():
            raise ValueError("tenant_id must not be empty")
        with self._lock:
            scheduler = self._schedulers.get(tenant_id)
            if scheduler is None:
                scheduler = Scheduler(
                    tenant_id,
                    repository=self._repository_factory(tenant_id),
                    notifier=self._notifier,
                    config=self._config,
                )
                self._schedulers[tenant_id] = scheduler
                logger.debug("Scheduler created for tenant %s", tenant_id)
            return scheduler

    def tenants(self) -> list[str]:
        """Return ids of all tenants with a live scheduler."""
        with self._lock:
            return list(self._schedulers)

    def evict(self, tenant_id: str) -> None:
        """Drop a tenant's scheduler; the next ``get`` builds a fresh one."""
        with self._lock:
            self._schedulers.pop(tenant_id, None)
