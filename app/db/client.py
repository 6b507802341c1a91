"""
Persistence adapter for tenant project graphs.
This module serializes a tenant's full list of projects to a key-value backend
and reads it back.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional

from pydantic import TypeAdapter, ValidationError as SchemaValidationError

from app.core import config
from app.core.errors import PersistenceFailure
from app.db.backends import create_backend
from app.models.schemas import Project

# Set up logger
logger = logging.getLogger(__name__)

PROJECTS_KEY_PREFIX = "databox_projects_"

PROJECT_LIST = TypeAdapter(List[Project])


def projects_key(tenant_id: str) -> str:
    """Backend key holding a tenant's serialized projects."""
    return f"{PROJECTS_KEY_PREFIX}{tenant_id}"


class Database:
    """Whole-graph persistence of a tenant's projects."""

    def __init__(
        self,
        backend=None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
    ):
        """
        Initialize the persistence adapter.

        Args:
            backend: Key-value backend (if None, the configured backend is created)
            timeout: Seconds before a backend call counts as timed out
            max_retries: Attempts after the first before giving up
            backoff: Initial delay between attempts, doubled on each retry
        """
        self.backend = backend if backend is not None else create_backend()
        self.timeout = config.PERSISTENCE_TIMEOUT_SECONDS if timeout is None else timeout
        self.max_retries = config.PERSISTENCE_MAX_RETRIES if max_retries is None else max_retries
        self.backoff = config.PERSISTENCE_BACKOFF_SECONDS if backoff is None else backoff

    async def _call(self, operation: str, fn: Callable[..., Any], *args, settle: bool = False) -> Any:
        """
        Run a blocking backend call with a timeout, retrying with backoff.

        A worker thread cannot be cancelled. Reads have no side effects, so a
        read that outlives the timeout is abandoned and counted as a failed
        attempt. With ``settle`` set (writes), the call is waited for instead:
        a late success counts as success and a late failure as a failed
        attempt, so a write is never reported failed after it has landed.

        Args:
            operation: Name used in log and error messages
            fn: Backend method to call
            *args: Arguments for the backend method
            settle: Wait for a timed-out call to finish before deciding

        Returns:
            Whatever the backend call returns
        """
        delay = self.backoff
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            call = asyncio.ensure_future(asyncio.to_thread(fn, *args))
            try:
                return await asyncio.wait_for(asyncio.shield(call), timeout=self.timeout)
            except asyncio.TimeoutError:
                if call.done() or settle:
                    if not call.done():
                        logger.warning(
                            f"{operation} still running after {self.timeout}s, waiting for it to finish"
                        )
                    try:
                        return await call
                    except Exception as e:
                        error = str(e)
                else:
                    # Retrieve the abandoned read's outcome once it arrives
                    call.add_done_callback(lambda done: done.cancelled() or done.exception())
                    error = f"timed out after {self.timeout}s"
            except Exception as e:
                error = str(e)

            if attempt == attempts:
                logger.error(f"{operation} failed after {attempts} attempts: {error}")
                raise PersistenceFailure(f"{operation} failed: {error}")

            logger.warning(f"{operation} attempt {attempt} failed ({error}), retrying in {delay}s")
            await asyncio.sleep(delay)
            delay *= 2

    async def load_projects(self, tenant_id: str) -> List[Project]:
        """
        Load a tenant's projects.

        Args:
            tenant_id: Tenant whose graph is read

        Returns:
            The stored projects, or an empty list when nothing was stored yet
        """
        raw = await self._call(f"Loading projects of {tenant_id}", self.backend.read, projects_key(tenant_id))
        if raw is None:
            return []

        try:
            return PROJECT_LIST.validate_json(raw)
        except SchemaValidationError as e:
            logger.error(f"Stored projects of {tenant_id} are corrupt: {str(e)}")
            raise PersistenceFailure(f"Stored projects of {tenant_id} could not be decoded")

    async def save_projects(self, tenant_id: str, projects: List[Project]) -> None:
        """
        Replace a tenant's stored projects with the given list.
        """
        payload = PROJECT_LIST.dump_json(projects).decode("utf-8")
        await self._call(
            f"Saving projects of {tenant_id}",
            self.backend.write,
            projects_key(tenant_id),
            payload,
            settle=True,
        )
        logger.debug(f"Saved {len(projects)} projects for {tenant_id}")
