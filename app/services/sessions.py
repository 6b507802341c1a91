"""
Per-tenant sessions.

A session starts when a tenant's graph is first needed and ends on an explicit
close. Each open session owns exactly one ProjectRegistry.
"""

import asyncio
import logging
from typing import Dict

from app.db.client import Database
from app.services.project_registry import ProjectRegistry

logger = logging.getLogger(__name__)


class SessionManager:
    """Opens, caches and closes ProjectRegistry instances by tenant."""

    def __init__(self, database: Database):
        self.database = database
        self._registries: Dict[str, ProjectRegistry] = {}
        self._lock = asyncio.Lock()

    async def open(self, tenant_id: str) -> ProjectRegistry:
        """
        Return the tenant's registry, loading it on first use.

        Args:
            tenant_id: Tenant resolved by the identity provider

        Returns:
            The tenant's registry
        """
        async with self._lock:
            registry = self._registries.get(tenant_id)
            if registry is None:
                registry = await ProjectRegistry.open(tenant_id, self.database)
                self._registries[tenant_id] = registry
                logger.info(f"Opened session for tenant {tenant_id}")
            return registry

    async def close(self, tenant_id: str) -> bool:
        """
        End a tenant's session and release its in-memory graph.

        Returns:
            True if a session was open
        """
        async with self._lock:
            registry = self._registries.pop(tenant_id, None)
        if registry is None:
            return False
        registry.close()
        logger.info(f"Closed session for tenant {tenant_id}")
        return True

    async def close_all(self) -> None:
        for tenant_id in list(self._registries):
            await self.close(tenant_id)
