"""
Project registry for a single tenant session.

The registry owns the tenant's in-memory project graph. Every mutation works on
a deep copy of the graph, writes the copy through the persistence adapter and
only then replaces the live graph, so a failed validation or a failed write
leaves memory matching the last saved state.
"""

import asyncio
import logging
import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from app.core import config
from app.core.errors import NotFound, ValidationError
from app.db.client import Database
from app.models.schemas import (
    ApiKey,
    AuthConfig,
    AuthConfigUpdate,
    Column,
    DatabaseStats,
    Project,
    ProjectUpdate,
    RLSPolicy,
    RLSPolicyCreate,
    StorageBucket,
    StorageConfig,
    StorageConfigUpdate,
    Table,
    new_id,
    utc_now,
)
from app.services.credentials import CredentialManager
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

MUTABLE_PROJECT_FIELDS = set(ProjectUpdate.model_fields)


def build_endpoints(project_id: str) -> Dict[str, str]:
    """Endpoint strings of a project. Descriptive only, nothing listens on them."""
    host = config.DATABOX_HOST
    return {
        "database_url": (
            f"{config.DATABASE_SCHEME}://{config.DATABASE_CREDENTIALS}"
            f"@db-{project_id}.{host}:{config.DATABASE_PORT}/{project_id}"
        ),
        "rest_url": f"https://{project_id}.{host}/rest/v1/",
        "realtime_url": f"wss://{project_id}.{host}/realtime/v1/websocket",
        "storage_url": f"https://{project_id}.{host}/storage/v1/",
        "edge_functions_url": f"https://{project_id}.{host}/functions/v1/",
    }


def default_auth_config() -> AuthConfig:
    return AuthConfig(jwt_secret=f"jwt_{secrets.token_hex(32)}")


def default_storage_config() -> StorageConfig:
    return StorageConfig(
        buckets=[
            StorageBucket(
                id="default",
                name="default",
                public=True,
                file_size_limit="50MB",
                allowed_mime_types=["image/*", "video/*", "application/pdf"],
                created_at=utc_now(),
            )
        ],
        max_file_size="50MB",
        allowed_mime_types=["*"],
    )


def _estimate_megabytes(total_rows: int) -> int:
    """0.1 MB per row, halves rounded up."""
    return int((Decimal(total_rows) / 10).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def recompute_stats(projects: List[Project]) -> DatabaseStats:
    """
    Aggregate table and row counts over a list of projects.

    Usage counters stay at zero: nothing in this service measures API calls or
    connections, so they are placeholders for display.
    """
    total_tables = sum(len(project.tables) for project in projects)
    total_rows = sum(len(table.rows) for project in projects for table in project.tables)
    return DatabaseStats(
        total_tables=total_tables,
        total_rows=total_rows,
        storage_used=f"{_estimate_megabytes(total_rows)} MB",
    )


def _find_project(projects: List[Project], project_id: str) -> Project:
    for project in projects:
        if project.id == project_id:
            return project
    raise NotFound(f"Project {project_id} not found")


class ProjectRegistry:
    """The projects of one tenant, with their tables, rows and keys."""

    def __init__(self, tenant_id: str, database: Database, projects: Optional[List[Project]] = None):
        """
        Initialize the registry.

        Args:
            tenant_id: Owner of every project in the registry
            database: Persistence adapter every mutation is written through
            projects: Already loaded projects
        """
        self.tenant_id = tenant_id
        self.database = database
        self._projects: List[Project] = list(projects or [])
        self._current_project_id: Optional[str] = None
        self._lock = asyncio.Lock()
        self.stats = recompute_stats(self._projects)

    @classmethod
    async def open(cls, tenant_id: str, database: Database) -> "ProjectRegistry":
        """Load a tenant's projects and return a registry over them."""
        projects = await database.load_projects(tenant_id)
        logger.info(f"Loaded {len(projects)} projects for tenant {tenant_id}")
        return cls(tenant_id, database, projects)

    def close(self) -> None:
        """Drop the in-memory graph at the end of a session."""
        self._projects = []
        self._current_project_id = None
        self.stats = recompute_stats(self._projects)

    # ===== Read Methods =====

    @property
    def projects(self) -> List[Project]:
        return list(self._projects)

    def list_projects(self) -> List[Project]:
        return self.projects

    def get_project(self, project_id: str) -> Project:
        return _find_project(self._projects, project_id)

    def get_table(self, project_id: str, table_id: str) -> Table:
        return RecordStore(self.get_project(project_id)).get_table(table_id)

    @property
    def current_project(self) -> Optional[Project]:
        if self._current_project_id is None:
            return None
        return _find_project(self._projects, self._current_project_id)

    def select_current(self, project_id: Optional[str]) -> Optional[Project]:
        """Select the session's current project, or clear it with ``None``."""
        if project_id is None:
            self._current_project_id = None
            return None
        project = self.get_project(project_id)
        self._current_project_id = project.id
        return project

    # ===== Mutation Protocol =====

    async def _mutate(self, change: Callable[[List[Project]], Tuple[T, bool]]) -> T:
        """
        Apply a change to a copy of the graph and persist it.

        Args:
            change: Receives the staged projects and returns the operation's
                result and whether anything changed

        Returns:
            The change's result
        """
        async with self._lock:
            staged = [project.model_copy(deep=True) for project in self._projects]
            result, changed = change(staged)
            if changed:
                await self.database.save_projects(self.tenant_id, staged)
                self._projects = staged
                self.stats = recompute_stats(self._projects)
            return result

    async def _mutate_project(
        self, project_id: str, change: Callable[[Project, List[Project]], T]
    ) -> T:
        def apply(staged: List[Project]) -> Tuple[T, bool]:
            project = _find_project(staged, project_id)
            result = change(project, staged)
            project.updated_at = utc_now()
            return result, True

        return await self._mutate(apply)

    # ===== Project Methods =====

    async def create_project(self, name: str, description: str, region: str) -> Project:
        """
        Create a project with seeded keys and default configuration.

        Args:
            name: Project name
            description: Free-form description
            region: One of the supported deployment regions

        Returns:
            The stored project
        """
        if not name or not name.strip():
            raise ValidationError("Project name must not be empty")
        if region not in config.SUPPORTED_REGIONS:
            raise ValidationError(f"Unsupported region {region}")

        def apply(staged: List[Project]) -> Tuple[Project, bool]:
            project_id = new_id("proj")
            while any(project.id == project_id for project in staged):
                project_id = new_id("proj")
            now = utc_now()
            project = Project(
                id=project_id,
                user_id=self.tenant_id,
                name=name.strip(),
                description=description or "",
                region=region,
                status="active",
                created_at=now,
                updated_at=now,
                auth_config=default_auth_config(),
                storage_config=default_storage_config(),
                **build_endpoints(project_id),
            )
            credentials = CredentialManager.for_projects(staged)
            credentials.issue(project, "Anonymous Key", "anon")
            credentials.issue(project, "Service Role Key", "service_role")
            staged.append(project)
            return project, True

        project = await self._mutate(apply)
        logger.info(f"Created project {project.name} ({project.id}) for tenant {self.tenant_id}")
        return project

    async def delete_project(self, project_id: str) -> None:
        """Delete a project together with its tables, rows and keys."""

        def apply(staged: List[Project]) -> Tuple[None, bool]:
            project = _find_project(staged, project_id)
            staged.remove(project)
            return None, True

        await self._mutate(apply)
        if self._current_project_id == project_id:
            self._current_project_id = None
        logger.info(f"Deleted project {project_id} of tenant {self.tenant_id}")

    async def update_project(self, project_id: str, fields: Dict[str, Any]) -> Project:
        """
        Merge the given fields into a project.

        Only name, description, region and status can change; ids, owner and
        endpoints are fixed at creation.
        """
        rejected = sorted(set(fields) - MUTABLE_PROJECT_FIELDS)
        if rejected:
            raise ValidationError(f"Field {rejected[0]} cannot be updated")
        try:
            update = ProjectUpdate(**fields)
        except ValueError as e:
            raise ValidationError(f"Invalid project update: {str(e)}")
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if "region" in changes and changes["region"] not in config.SUPPORTED_REGIONS:
            raise ValidationError(f"Unsupported region {changes['region']}")
        if "name" in changes and not changes["name"].strip():
            raise ValidationError("Project name must not be empty")

        def change(project: Project, staged: List[Project]) -> Project:
            for key, value in changes.items():
                setattr(project, key, value)
            return project

        return await self._mutate_project(project_id, change)

    async def update_auth_config(self, project_id: str, update: AuthConfigUpdate) -> AuthConfig:
        changes = update.model_dump(exclude_unset=True, exclude_none=True)

        def change(project: Project, staged: List[Project]) -> AuthConfig:
            project.auth_config = project.auth_config.model_copy(update=changes)
            return project.auth_config

        return await self._mutate_project(project_id, change)

    async def update_storage_config(self, project_id: str, update: StorageConfigUpdate) -> StorageConfig:
        changes = {
            key: getattr(update, key)
            for key in update.model_fields_set
            if getattr(update, key) is not None
        }

        def change(project: Project, staged: List[Project]) -> StorageConfig:
            project.storage_config = project.storage_config.model_copy(update=changes)
            return project.storage_config

        return await self._mutate_project(project_id, change)

    async def create_project_policy(self, project_id: str, policy: RLSPolicyCreate) -> RLSPolicy:
        def change(project: Project, staged: List[Project]) -> RLSPolicy:
            stored = RLSPolicy(id=new_id("policy"), created_at=utc_now(), **policy.model_dump())
            project.rls_policies.append(stored)
            return stored

        return await self._mutate_project(project_id, change)

    # ===== Table and Row Methods =====

    async def create_table(self, project_id: str, name: str, columns: List[Column]) -> Table:
        return await self._mutate_project(
            project_id, lambda project, staged: RecordStore(project).create_table(name, columns)
        )

    async def delete_table(self, project_id: str, table_id: str) -> bool:
        """Delete a table. Deleting a table that does not exist is a no-op."""

        def apply(staged: List[Project]) -> Tuple[bool, bool]:
            project = _find_project(staged, project_id)
            removed = RecordStore(project).delete_table(table_id)
            if removed:
                project.updated_at = utc_now()
            return removed, removed

        return await self._mutate(apply)

    async def toggle_rls(self, project_id: str, table_id: str, enabled: bool) -> Table:
        return await self._mutate_project(
            project_id, lambda project, staged: RecordStore(project).toggle_rls(table_id, enabled)
        )

    async def add_row(self, project_id: str, table_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._mutate_project(
            project_id, lambda project, staged: RecordStore(project).add_row(table_id, payload)
        )

    async def update_row(
        self, project_id: str, table_id: str, row_index: int, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._mutate_project(
            project_id,
            lambda project, staged: RecordStore(project).update_row(table_id, row_index, payload),
        )

    async def delete_row(self, project_id: str, table_id: str, row_index: int) -> Dict[str, Any]:
        return await self._mutate_project(
            project_id, lambda project, staged: RecordStore(project).delete_row(table_id, row_index)
        )

    async def create_table_policy(self, project_id: str, table_id: str, policy: RLSPolicyCreate) -> RLSPolicy:
        return await self._mutate_project(
            project_id, lambda project, staged: RecordStore(project).create_policy(table_id, policy)
        )

    async def toggle_table_policy(
        self, project_id: str, table_id: str, policy_id: str, enabled: bool
    ) -> RLSPolicy:
        return await self._mutate_project(
            project_id,
            lambda project, staged: RecordStore(project).toggle_policy(table_id, policy_id, enabled),
        )

    # ===== API Key Methods =====

    async def issue_api_key(self, project_id: str, name: str, key_type: str) -> ApiKey:
        return await self._mutate_project(
            project_id,
            lambda project, staged: CredentialManager.for_projects(staged).issue(project, name, key_type),
        )

    async def revoke_api_key(self, project_id: str, key_id: str) -> ApiKey:
        return await self._mutate_project(
            project_id,
            lambda project, staged: CredentialManager.for_projects(staged).revoke(project, key_id),
        )

    async def authenticate_api_key(self, key: str) -> Tuple[Project, ApiKey]:
        """Resolve an active key to its project, recording when it was used."""

        def apply(staged: List[Project]) -> Tuple[Tuple[Project, ApiKey], bool]:
            return CredentialManager.authenticate(staged, key), True

        return await self._mutate(apply)
